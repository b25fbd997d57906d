"""
System constants that should never change.

These are technical/system limits, not user preferences.
User-configurable values should go in config.yaml instead.
"""

# Schema version of ThumbConfig / config.yaml
CONFIG_VERSION = 1

# Still-image codec option ranges
MIN_STILL_QUALITY = 1
MAX_STILL_QUALITY = 100
MIN_STILL_SPEED = 1
MAX_STILL_SPEED = 10

# Percentage stills are taken from [0, 100] percent of the duration
MIN_PERCENTAGE = 0
MAX_PERCENTAGE = 100

# Default classification sets (lowercase, no leading dot)
DEFAULT_PHOTO_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "tiff", "tga")
DEFAULT_VIDEO_EXTENSIONS = ("mp4", "webm", "av1", "3gp", "mov", "mkv", "flv", "m4v", "m4p")

# Default transcode encoders
DEFAULT_VIDEO_CODEC = "libvpx-vp9"
DEFAULT_AUDIO_CODEC = "libopus"
DEFAULT_AUDIO_BITRATE = "64k"

# External tool timeouts (seconds)
FFPROBE_TIMEOUT = 30
FFMPEG_TIMEOUT = 1800

# Batch defaults
DEFAULT_RETRY_INTERVAL = 0.5
DEFAULT_RETRY_ATTEMPTS = 4
WORKSPACE_PREFIX = ".thumbnail-toolkit-"
STAGING_DIR_NAME = "staging"

# Percentage stills never seek closer than this to the end of the stream (seconds)
SEEK_END_MARGIN = 0.1

# Cached ffprobe results kept per process
MAX_PROBE_CACHE_ENTRIES = 256

ERROR_MESSAGE_TRUNCATE_LENGTH = 100  # Maximum length for error message display
