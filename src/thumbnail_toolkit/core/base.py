"""Base classes and interfaces for thumbnail generation."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path

LOG = logging.getLogger(__name__)


class ProcessingStatus(Enum):
    """Terminal state of one source file."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class ProcessingResult:
    """Result of processing one source file."""

    source_file: Path
    status: ProcessingStatus
    message: str = ""
    output_dir: Path | None = None
    artifacts: list[str] = field(default_factory=list)
    attempts: int = 1
    processing_time: float = 0.0
    error: Exception | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class ConfigurationError(ValueError):
    """Invalid configuration. A caller bug, never retried."""


class ProcessingError(Exception):
    """Base exception for per-file processing errors."""

    def __init__(
        self,
        message: str,
        file_path: Path | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.file_path = file_path
        self.cause = cause


class CodecError(ProcessingError):
    """Still-image decode or encode failure."""


class StagingError(ProcessingError):
    """Workspace creation, move or cleanup failure."""


class MediaProcessor(ABC):
    """Abstract base class for media processors."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    @abstractmethod
    def can_process(self, file_path: Path) -> bool:
        """Check if this processor can handle the given file."""

    @abstractmethod
    def should_process(self, file_path: Path, destination_root: Path) -> bool:
        """Check if the file still needs processing (outputs missing)."""

    @abstractmethod
    def process_file(self, file_path: Path, destination_root: Path) -> ProcessingResult:
        """Process a single file, raising on failure."""
