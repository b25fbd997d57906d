"""Core abstractions and utilities for the thumbnail toolkit."""

from .base import (
    CodecError,
    ConfigurationError,
    MediaProcessor,
    ProcessingError,
    ProcessingResult,
    ProcessingStatus,
    StagingError,
)
from .directory_processor import BatchReport, discover_files, process_directory_unified, process_files
from .ffmpeg import FFmpegError, FFmpegProbe, FFmpegProcessor, MediaInfo, ProbeError
from .file_manager import StagedWriter
from .filter_graph import FilterGraphBuilder
from .logging_setup import setup_logging
from .output_plan import ArtifactKind, MediaCategory, PlannedArtifact, classify, outputs_exist, plan_outputs
from .retry import RetryError, RetryPolicy, run_with_retry

__all__ = [
    "ArtifactKind",
    "BatchReport",
    "CodecError",
    "ConfigurationError",
    "FFmpegError",
    "FFmpegProbe",
    "FFmpegProcessor",
    "FilterGraphBuilder",
    "MediaCategory",
    "MediaInfo",
    "MediaProcessor",
    "PlannedArtifact",
    "ProbeError",
    "ProcessingError",
    "ProcessingResult",
    "ProcessingStatus",
    "RetryError",
    "RetryPolicy",
    "StagedWriter",
    "StagingError",
    "classify",
    "discover_files",
    "outputs_exist",
    "plan_outputs",
    "process_directory_unified",
    "process_files",
    "run_with_retry",
    "setup_logging",
]
