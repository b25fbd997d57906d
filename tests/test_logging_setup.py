"""Tests for logging configuration."""

import logging
from collections.abc import Iterator

import pytest

from thumbnail_toolkit.core.logging_setup import setup_logging

FFMPEG_LOGGER = "thumbnail_toolkit.core.ffmpeg"


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger(FFMPEG_LOGGER).setLevel(logging.NOTSET)


@pytest.mark.parametrize(
    ("verbosity", "level"),
    [(0, logging.WARNING), (1, logging.INFO), (2, logging.DEBUG), (5, logging.DEBUG)],
)
def test_verbosity_levels(verbosity: int, level: int) -> None:
    """Test the mapping from verbosity to root log level."""
    setup_logging(verbosity)
    assert logging.getLogger().level == level


def test_ffmpeg_logger_is_quiet_unless_debugging() -> None:
    """Test that ffmpeg command lines are only logged at full verbosity."""
    setup_logging(1)
    assert logging.getLogger(FFMPEG_LOGGER).level == logging.WARNING

    setup_logging(2)
    assert logging.getLogger(FFMPEG_LOGGER).level == logging.NOTSET
