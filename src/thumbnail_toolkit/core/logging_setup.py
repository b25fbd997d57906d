"""Logging configuration for scripts driving the toolkit."""

from __future__ import annotations

import logging
import sys

LEVEL_MAP = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
}

# Logs every ffmpeg command line at INFO
NOISY_LOGGERS = ("thumbnail_toolkit.core.ffmpeg",)


def setup_logging(verbosity: int = 0) -> None:
    """Setup logging based on verbosity level (0, 1 or 2+)."""
    level = LEVEL_MAP.get(verbosity, logging.DEBUG)

    log_format = "%(levelname)s: %(name)s: %(message)s" if verbosity >= 2 else "%(levelname)s: %(message)s"

    logging.basicConfig(level=level, format=log_format, handlers=[logging.StreamHandler(sys.stderr)], force=True)

    # Set FFmpeg logs to higher level to reduce noise
    noisy_level = logging.WARNING if verbosity < 2 else logging.NOTSET
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)
