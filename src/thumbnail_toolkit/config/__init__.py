"""Configuration management for the thumbnail toolkit."""

from __future__ import annotations

from .constants import *  # noqa: F403, F401
from .settings import (
    ClassificationConfig,
    StillCodecOptions,
    ThumbConfig,
    TranscodeOutput,
    VideoThumbConfig,
    get_config,
    reset_config,
)

__all__ = [
    "ClassificationConfig",
    "StillCodecOptions",
    "ThumbConfig",
    "TranscodeOutput",
    "VideoThumbConfig",
    "get_config",
    "reset_config",
]
