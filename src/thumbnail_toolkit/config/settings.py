"""Configuration management for thumbnail generation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ..core.base import ConfigurationError
from .constants import (
    CONFIG_VERSION,
    DEFAULT_AUDIO_BITRATE,
    DEFAULT_AUDIO_CODEC,
    DEFAULT_PHOTO_EXTENSIONS,
    DEFAULT_VIDEO_CODEC,
    DEFAULT_VIDEO_EXTENSIONS,
    MAX_PERCENTAGE,
    MAX_STILL_QUALITY,
    MAX_STILL_SPEED,
    MIN_PERCENTAGE,
    MIN_STILL_QUALITY,
    MIN_STILL_SPEED,
)

LOG = logging.getLogger(__name__)

PHOTO_BACKENDS = ("auto", "pillow", "ffmpeg")


# Configuration singleton
class _ConfigSingleton:
    """Configuration singleton holder."""

    _instance: ThumbConfig | None = None

    @classmethod
    def get_instance(cls) -> ThumbConfig:
        """Get the configuration instance."""
        if cls._instance is None:
            config_path = Path.cwd() / "config.yaml"
            if config_path.exists():
                cls._instance = ThumbConfig.load_from_file(config_path)
            else:
                cls._instance = ThumbConfig()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the configuration instance."""
        cls._instance = None


_config_singleton = _ConfigSingleton()


def _normalize_extension(extension: str) -> str:
    if not isinstance(extension, str) or not extension.strip(". "):
        msg = f"Invalid extension: {extension!r}"
        raise ConfigurationError(msg)
    return extension.strip().lstrip(".").lower()


def _require_int(name: str, value: object, *, minimum: int | None = None, maximum: int | None = None) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{name} must be an integer, got {value!r}"
        raise ConfigurationError(msg)
    if minimum is not None and value < minimum:
        msg = f"{name} must be >= {minimum}, got {value}"
        raise ConfigurationError(msg)
    if maximum is not None and value > maximum:
        msg = f"{name} must be <= {maximum}, got {value}"
        raise ConfigurationError(msg)


def _sequence(data: dict[str, Any], key: str, default: tuple[Any, ...]) -> tuple[Any, ...]:
    """Return a configured list as a tuple; an explicit null means empty."""
    if key not in data:
        return default
    return tuple(data[key] or ())


def _require_unique(name: str, values: tuple[int, ...]) -> None:
    if len(set(values)) != len(values):
        msg = f"{name} contains duplicates: {list(values)}"
        raise ConfigurationError(msg)


@dataclass(frozen=True)
class ClassificationConfig:
    """Extension sets used to classify source files."""

    photo_extensions: frozenset[str] = frozenset(DEFAULT_PHOTO_EXTENSIONS)
    video_extensions: frozenset[str] = frozenset(DEFAULT_VIDEO_EXTENSIONS)

    def __post_init__(self) -> None:
        """Normalise extensions and reject overlapping sets."""
        photos = frozenset(_normalize_extension(e) for e in self.photo_extensions)
        videos = frozenset(_normalize_extension(e) for e in self.video_extensions)
        overlap = photos & videos
        if overlap:
            msg = f"Extensions configured as both photo and video: {', '.join(sorted(overlap))}"
            raise ConfigurationError(msg)
        object.__setattr__(self, "photo_extensions", photos)
        object.__setattr__(self, "video_extensions", videos)


@dataclass(frozen=True)
class StillCodecOptions:
    """Still-image encoder settings."""

    quality: int = 80
    alpha_quality: int = 80
    # 1 = slowest, best compression; 10 = fastest
    speed: int = 4

    def __post_init__(self) -> None:
        """Validate codec ranges."""
        _require_int("still_codec.quality", self.quality, minimum=MIN_STILL_QUALITY, maximum=MAX_STILL_QUALITY)
        _require_int(
            "still_codec.alpha_quality", self.alpha_quality, minimum=MIN_STILL_QUALITY, maximum=MAX_STILL_QUALITY
        )
        _require_int("still_codec.speed", self.speed, minimum=MIN_STILL_SPEED, maximum=MAX_STILL_SPEED)


@dataclass(frozen=True)
class TranscodeOutput:
    """One downscaled video preview."""

    height: int
    # CRF value handed to the video encoder
    quality: int

    def __post_init__(self) -> None:
        """Validate output settings."""
        _require_int("transcode_outputs.height", self.height, minimum=1)
        _require_int("transcode_outputs.quality", self.quality, minimum=0)


@dataclass(frozen=True)
class VideoThumbConfig:
    """Video-specific derivative settings."""

    thumb_time: float = 0.5
    percentages: tuple[int, ...] = (0, 33, 66, 99)
    percentage_still_height: int = 720
    transcode_outputs: tuple[TranscodeOutput, ...] = (
        TranscodeOutput(height=480, quality=35),
        TranscodeOutput(height=144, quality=40),
    )
    transcode_extension: str = "webm"
    video_codec: str = DEFAULT_VIDEO_CODEC
    audio_codec: str = DEFAULT_AUDIO_CODEC
    audio_bitrate: str = DEFAULT_AUDIO_BITRATE

    def __post_init__(self) -> None:
        """Validate and normalise video settings."""
        if isinstance(self.thumb_time, bool) or not isinstance(self.thumb_time, (int, float)) or self.thumb_time < 0:
            msg = f"video.thumb_time must be a number >= 0, got {self.thumb_time!r}"
            raise ConfigurationError(msg)

        percentages = tuple(self.percentages)
        for percentage in percentages:
            _require_int("video.percentages", percentage, minimum=MIN_PERCENTAGE, maximum=MAX_PERCENTAGE)
        _require_unique("video.percentages", percentages)

        _require_int("video.percentage_still_height", self.percentage_still_height, minimum=1)

        outputs = tuple(self.transcode_outputs)
        for output in outputs:
            if not isinstance(output, TranscodeOutput):
                msg = f"video.transcode_outputs entries must be TranscodeOutput, got {output!r}"
                raise ConfigurationError(msg)
        _require_unique("video.transcode_outputs heights", tuple(o.height for o in outputs))

        for name in ("video_codec", "audio_codec", "audio_bitrate"):
            if not getattr(self, name):
                msg = f"video.{name} must not be empty"
                raise ConfigurationError(msg)

        object.__setattr__(self, "thumb_time", float(self.thumb_time))
        object.__setattr__(self, "percentages", percentages)
        object.__setattr__(self, "transcode_outputs", outputs)
        object.__setattr__(self, "transcode_extension", _normalize_extension(self.transcode_extension))


@dataclass(frozen=True)
class ThumbConfig:
    """
    Complete, immutable thumbnail configuration.

    Validated once at construction and shared read-only between all
    concurrent file tasks of a batch.
    """

    version: int = CONFIG_VERSION
    classification: ClassificationConfig = field(default_factory=ClassificationConfig)
    heights: tuple[int, ...] = (240, 480, 1080)
    still_extension: str = "avif"
    still_codec: StillCodecOptions = field(default_factory=StillCodecOptions)
    photo_backend: str = "auto"
    video: VideoThumbConfig = field(default_factory=VideoThumbConfig)
    skip_if_exists: bool = True

    def __post_init__(self) -> None:
        """Validate the configuration as a whole."""
        if self.version != CONFIG_VERSION:
            msg = f"Unsupported config version {self.version!r} (expected {CONFIG_VERSION})"
            raise ConfigurationError(msg)

        for name, expected in (
            ("classification", ClassificationConfig),
            ("still_codec", StillCodecOptions),
            ("video", VideoThumbConfig),
        ):
            value = getattr(self, name)
            if not isinstance(value, expected):
                msg = f"{name} must be a {expected.__name__}, got {type(value).__name__}"
                raise ConfigurationError(msg)
        if not isinstance(self.skip_if_exists, bool):
            msg = f"skip_if_exists must be true or false, got {self.skip_if_exists!r}"
            raise ConfigurationError(msg)

        heights = tuple(self.heights)
        for height in heights:
            _require_int("heights", height, minimum=1)
        _require_unique("heights", heights)
        object.__setattr__(self, "heights", heights)
        object.__setattr__(self, "still_extension", _normalize_extension(self.still_extension))

        if self.photo_backend not in PHOTO_BACKENDS:
            msg = f"photo_backend must be one of {', '.join(PHOTO_BACKENDS)}, got {self.photo_backend!r}"
            raise ConfigurationError(msg)

        if self.still_extension == self.video.transcode_extension:
            shared = set(heights) & {o.height for o in self.video.transcode_outputs}
            if shared:
                msg = (
                    f"Still and transcode outputs would both be named "
                    f"{', '.join(f'{h}p.{self.still_extension}' for h in sorted(shared))}"
                )
                raise ConfigurationError(msg)

    @classmethod
    def load_from_file(cls, config_path: Path) -> ThumbConfig:
        """Load configuration from YAML file."""
        try:
            with config_path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            LOG.warning("Failed to load config from %s: %s", config_path, e)
            return cls()

        if not isinstance(data, dict):
            msg = f"Config file {config_path} must contain a mapping at the top level"
            raise ConfigurationError(msg)
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> ThumbConfig:
        """Create config from dictionary."""
        defaults = cls()
        try:
            return cls(
                version=data.get("version", CONFIG_VERSION),
                classification=cls._parse_classification(data.get("classification") or {}),
                heights=_sequence(data, "heights", defaults.heights),
                still_extension=data.get("still_extension", defaults.still_extension),
                still_codec=StillCodecOptions(**(data.get("still_codec") or {})),
                photo_backend=data.get("photo_backend", defaults.photo_backend),
                video=cls._parse_video_config(data.get("video") or {}),
                skip_if_exists=data.get("skip_if_exists", defaults.skip_if_exists),
            )
        except (TypeError, KeyError) as e:
            msg = f"Malformed configuration: {e}"
            raise ConfigurationError(msg) from e

    @classmethod
    def _parse_classification(cls, classification_data: dict[str, Any]) -> ClassificationConfig:
        """Parse classification configuration."""
        return ClassificationConfig(
            photo_extensions=frozenset(classification_data.get("photo_extensions", DEFAULT_PHOTO_EXTENSIONS)),
            video_extensions=frozenset(classification_data.get("video_extensions", DEFAULT_VIDEO_EXTENSIONS)),
        )

    @classmethod
    def _parse_video_config(cls, video_data: dict[str, Any]) -> VideoThumbConfig:
        """Parse video configuration."""
        defaults = VideoThumbConfig()
        if "transcode_outputs" not in video_data:
            outputs = defaults.transcode_outputs
        else:
            outputs = tuple(
                TranscodeOutput(height=o["height"], quality=o["quality"])
                for o in video_data["transcode_outputs"] or ()
            )

        return VideoThumbConfig(
            thumb_time=video_data.get("thumb_time", defaults.thumb_time),
            percentages=_sequence(video_data, "percentages", defaults.percentages),
            percentage_still_height=video_data.get("percentage_still_height", defaults.percentage_still_height),
            transcode_outputs=outputs,
            transcode_extension=video_data.get("transcode_extension", defaults.transcode_extension),
            video_codec=video_data.get("video_codec", defaults.video_codec),
            audio_codec=video_data.get("audio_codec", defaults.audio_codec),
            audio_bitrate=str(video_data.get("audio_bitrate", defaults.audio_bitrate)),
        )


def get_config() -> ThumbConfig:
    """Get the global configuration instance."""
    return _config_singleton.get_instance()


def reset_config() -> None:
    """Forget the cached global configuration."""
    _config_singleton.reset()
