"""Thumbnail Toolkit - resized stills, timeline stills and preview transcodes for media trees."""

from __future__ import annotations

__version__ = "0.1.0"
__description__ = "Batch thumbnail and preview generation for photos and videos"

# Public API exports
from .config import (
    ClassificationConfig,
    StillCodecOptions,
    ThumbConfig,
    TranscodeOutput,
    VideoThumbConfig,
    get_config,
)
from .core import (
    BatchReport,
    CodecError,
    ConfigurationError,
    FFmpegError,
    FFmpegProbe,
    FFmpegProcessor,
    MediaCategory,
    ProbeError,
    ProcessingError,
    ProcessingResult,
    ProcessingStatus,
    RetryPolicy,
    StagedWriter,
    StagingError,
    setup_logging,
)
from .processors import (
    PhotoThumbnailer,
    ThumbnailProcessor,
    VideoThumbnailer,
    build_video_command,
    generate_thumbnails,
    process_directory,
)

__all__ = [
    # Configuration
    "ClassificationConfig",
    "StillCodecOptions",
    "ThumbConfig",
    "TranscodeOutput",
    "VideoThumbConfig",
    "get_config",
    # Processing
    "FFmpegProbe",
    "FFmpegProcessor",
    "PhotoThumbnailer",
    "StagedWriter",
    "ThumbnailProcessor",
    "VideoThumbnailer",
    "build_video_command",
    "generate_thumbnails",
    "process_directory",
    "setup_logging",
    # Enums and data classes
    "BatchReport",
    "MediaCategory",
    "ProcessingResult",
    "ProcessingStatus",
    "RetryPolicy",
    # Exceptions
    "CodecError",
    "ConfigurationError",
    "FFmpegError",
    "ProbeError",
    "ProcessingError",
    "StagingError",
]
