"""Source classification, expected output filenames and the existence check."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from ..config import ClassificationConfig, ThumbConfig

LOG = logging.getLogger(__name__)


class MediaCategory(Enum):
    """Kind of source file."""

    PHOTO = "photo"
    VIDEO = "video"
    UNKNOWN = "unknown"


class ArtifactKind(Enum):
    """Which producer writes an artifact."""

    STILL = "still"
    PERCENT_STILL = "percent_still"
    TRANSCODE = "transcode"


@dataclass(frozen=True)
class PlannedArtifact:
    """One expected output file, relative to the file's output folder."""

    filename: str
    kind: ArtifactKind
    # Height in pixels, or percentage for PERCENT_STILL
    value: int


def classify(file_path: Path, classification: ClassificationConfig) -> MediaCategory:
    """Classify a file by its (case-insensitive) extension; photo wins ties."""
    extension = file_path.suffix.lstrip(".").lower()
    if not extension:
        return MediaCategory.UNKNOWN
    if extension in classification.photo_extensions:
        return MediaCategory.PHOTO
    if extension in classification.video_extensions:
        return MediaCategory.VIDEO
    return MediaCategory.UNKNOWN


def still_filename(height: int, config: ThumbConfig) -> str:
    return f"{height}p.{config.still_extension}"


def percent_still_filename(percentage: int, config: ThumbConfig) -> str:
    return f"{percentage}_percent.{config.still_extension}"


def transcode_filename(height: int, config: ThumbConfig) -> str:
    return f"{height}p.{config.video.transcode_extension}"


def plan_outputs(category: MediaCategory, config: ThumbConfig) -> tuple[PlannedArtifact, ...]:
    """
    List every artifact a source of the given category must produce.

    The result depends only on the category and the configuration, so two
    files processed with the same config get the same filename set.
    """
    if category is MediaCategory.UNKNOWN:
        return ()

    artifacts = [PlannedArtifact(still_filename(h, config), ArtifactKind.STILL, h) for h in config.heights]

    if category is MediaCategory.VIDEO:
        artifacts.extend(
            PlannedArtifact(percent_still_filename(p, config), ArtifactKind.PERCENT_STILL, p)
            for p in config.video.percentages
        )
        artifacts.extend(
            PlannedArtifact(transcode_filename(o.height, config), ArtifactKind.TRANSCODE, o.height)
            for o in config.video.transcode_outputs
        )

    return tuple(artifacts)


def _artifact_present(path: Path) -> bool:
    """Return whether ``path`` exists; errors other than absence propagate."""
    try:
        path.stat()
    except (FileNotFoundError, NotADirectoryError):
        return False
    return True


def outputs_exist(category: MediaCategory, config: ThumbConfig, destination: Path) -> bool:
    """
    Check whether every planned artifact is already in ``destination``.

    A missing destination folder counts as "not present". Any other
    filesystem error (permissions, I/O) is raised so it is never mistaken
    for absence.
    """
    for artifact in plan_outputs(category, config):
        if not _artifact_present(destination / artifact.filename):
            LOG.debug("Missing artifact %s in %s", artifact.filename, destination)
            return False
    return True
