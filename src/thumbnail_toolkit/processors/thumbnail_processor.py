"""Per-file dispatcher and batch entry points."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from ..config import get_config
from ..core.base import MediaProcessor, ProcessingResult, ProcessingStatus
from ..core.directory_processor import process_directory_unified
from ..core.directory_processor import process_files as process_files_unified
from ..core.ffmpeg import FFmpegProcessor
from ..core.file_manager import StagedWriter
from ..core.output_plan import MediaCategory, classify, outputs_exist
from .photo_processor import PhotoThumbnailer
from .video_processor import VideoThumbnailer

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from ..config import ThumbConfig
    from ..core.directory_processor import BatchReport
    from ..core.retry import RetryPolicy


class ThumbnailProcessor(MediaProcessor):
    """
    Turns one source file into its folder of thumbnails.

    ``process_file`` walks a small state machine: unknown files and files
    whose outputs all exist are SKIPPED without touching any codec or tool;
    everything else is rendered into a temporary workspace and moved into
    ``<destination_root>/<source name>/`` only after the whole pipeline
    succeeded. Pipeline and staging errors propagate to the caller.
    """

    def __init__(
        self,
        config: ThumbConfig | None = None,
        *,
        staged_writer: StagedWriter | None = None,
        ffmpeg: FFmpegProcessor | None = None,
    ) -> None:
        """Initialize with a configuration (the global one when omitted)."""
        super().__init__("ThumbnailProcessor")
        self.config = config if config is not None else get_config()
        self.ffmpeg = ffmpeg or FFmpegProcessor()
        self.staged_writer = staged_writer or StagedWriter()
        self.photo = PhotoThumbnailer(self.config, ffmpeg=self.ffmpeg)
        self.video = VideoThumbnailer(self.config, ffmpeg=self.ffmpeg)

    def can_process(self, file_path: Path) -> bool:
        return classify(file_path, self.config.classification) is not MediaCategory.UNKNOWN

    @staticmethod
    def destination_for(file_path: Path, destination_root: Path) -> Path:
        """Folder receiving the artifacts of ``file_path``."""
        return destination_root / file_path.name

    def should_process(self, file_path: Path, destination_root: Path) -> bool:
        category = classify(file_path, self.config.classification)
        if category is MediaCategory.UNKNOWN:
            return False
        if not self.config.skip_if_exists:
            return True
        return not outputs_exist(category, self.config, self.destination_for(file_path, destination_root))

    def process_file(self, file_path: Path, destination_root: Path) -> ProcessingResult:
        """Generate every artifact of ``file_path``."""
        start_time = time.time()
        category = classify(file_path, self.config.classification)
        destination = self.destination_for(file_path, destination_root)

        if category is MediaCategory.UNKNOWN:
            self.logger.debug("Skipping %s: unsupported extension", file_path)
            return ProcessingResult(
                source_file=file_path,
                status=ProcessingStatus.SKIPPED,
                message="Unsupported file type",
                metadata={"category": category.value},
            )

        if self.config.skip_if_exists and outputs_exist(category, self.config, destination):
            self.logger.debug("Skipping %s: all outputs present in %s", file_path, destination)
            return ProcessingResult(
                source_file=file_path,
                status=ProcessingStatus.SKIPPED,
                message="Outputs already exist",
                output_dir=destination,
                metadata={"category": category.value},
            )

        pipeline = self.photo if category is MediaCategory.PHOTO else self.video
        self.logger.info("Generating %s thumbnails for %s", category.value, file_path)

        with self.staged_writer.workspace(destination_root) as workspace:
            pipeline.generate(file_path, workspace)
            moved = self.staged_writer.commit(workspace, destination)

        processing_time = time.time() - start_time
        self.logger.info("Wrote %d files for %s in %.2fs", len(moved), file_path.name, processing_time)
        return ProcessingResult(
            source_file=file_path,
            status=ProcessingStatus.SUCCESS,
            message=f"Generated {len(moved)} files",
            output_dir=destination,
            artifacts=moved,
            processing_time=processing_time,
            metadata={"category": category.value},
        )

    def process_files(self, files: Iterable[Path], destination_root: Path, **kwargs: object) -> BatchReport:
        """Process the given files concurrently with retries."""
        return process_files_unified(self, files, destination_root, **kwargs)  # type: ignore[arg-type]

    def process_directory(self, root: Path, destination_root: Path, **kwargs: object) -> BatchReport:
        """Process every file under ``root`` concurrently with retries."""
        return process_directory_unified(self, root, destination_root, **kwargs)


def generate_thumbnails(
    file_path: Path, destination_root: Path, config: ThumbConfig | None = None
) -> ProcessingResult:
    """Process one file with ``config`` (the global config when omitted)."""
    return ThumbnailProcessor(config).process_file(file_path, destination_root)


def process_directory(
    root: Path,
    destination_root: Path,
    config: ThumbConfig | None = None,
    *,
    concurrency: int | None = None,
    retry: RetryPolicy | None = None,
    show_progress: bool = True,
) -> BatchReport:
    """
    Generate thumbnails for every file under ``root``.

    Args:
        root: Input directory, walked recursively
        destination_root: Output directory, one sub-folder per source file
        config: Thumbnail configuration (the global config when omitted)
        concurrency: Files processed at once; None picks a value from the host
        retry: Per-file retry policy
        show_progress: Show a progress bar

    Returns:
        BatchReport; individual failures are reported there, not raised

    Raises:
        ProcessingError: if ``root`` is missing or not a directory

    """
    processor = ThumbnailProcessor(config)
    return processor.process_directory(
        root, destination_root, concurrency=concurrency, retry=retry, show_progress=show_progress
    )
