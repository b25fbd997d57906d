#!/usr/bin/env python3
"""Generate thumbnails for everything under ./assets into ./thumbs."""

import sys
from pathlib import Path

from thumbnail_toolkit import RetryPolicy, ThumbConfig, process_directory, setup_logging

CONCURRENT_FILES = 4


def main() -> int:
    """Run one batch with the settings from ./config.yaml."""
    setup_logging(verbosity=1)

    config = ThumbConfig.load_from_file(Path("config.yaml"))
    report = process_directory(
        Path("assets"),
        Path("thumbs"),
        config,
        concurrency=CONCURRENT_FILES,
        retry=RetryPolicy(interval=0.5, max_attempts=4),
    )

    print(f"🎯 {report.summary()}")
    # Per-file failures are listed above; the run itself succeeded
    return 0


if __name__ == "__main__":
    sys.exit(main())
