"""Failure table shown at the end of a batch run."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..config.constants import ERROR_MESSAGE_TRUNCATE_LENGTH

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .base import ProcessingResult

# Constants for table formatting
MAX_PATH_LENGTH = 50
PATH_TRUNCATE_LENGTH = 47


def _shorten(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


def format_failure_table(failed_results: Sequence[ProcessingResult]) -> str:
    """Render one row per failed file: path, attempts and final error."""
    lines = [
        "=" * 80,
        f"{'THUMBNAIL FAILURES':^80}",
        "=" * 80,
        f"Total failed: {len(failed_results)} files",
        "",
        f"{'FILE':<{MAX_PATH_LENGTH}} | {'TRIES':>5} | ERROR",
        "-" * 80,
    ]
    for result in failed_results:
        path = str(result.source_file)
        if len(path) > MAX_PATH_LENGTH:
            # Keep the tail, it carries the file name
            path = "..." + path[-PATH_TRUNCATE_LENGTH:]
        error_msg = _shorten(result.message or "Unknown error", ERROR_MESSAGE_TRUNCATE_LENGTH)
        lines.append(f"{path:<{MAX_PATH_LENGTH}} | {result.attempts:>5} | {error_msg}")
    return "\n".join(lines)


def print_failure_table(failed_results: Sequence[ProcessingResult]) -> None:
    """
    Print a simple table showing files that could not be processed.

    Args:
        failed_results: ProcessingResult objects with FAILED status

    """
    if not failed_results:
        return

    print("\n" + format_failure_table(failed_results))
    print("\n💡 TIP: Check that ffmpeg/ffprobe are installed and the sources are readable\n")
