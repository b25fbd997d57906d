"""Worker count selection for batch and per-height parallelism."""

from __future__ import annotations

import logging

import psutil

LOG = logging.getLogger(__name__)

# Upper bound for automatically chosen file-level workers; each video file
# already runs one multi-threaded ffmpeg process
MAX_AUTO_FILE_WORKERS = 4

# Memory usage threshold (percentage) above which auto mode drops to one worker
MEMORY_THRESHOLD = 80

FALLBACK_WORKERS = 1


def get_safe_worker_count(configured_workers: int | None) -> int:
    """
    Get the number of files to process concurrently.

    An explicit ``configured_workers`` is honoured exactly. ``None`` picks a
    conservative value from the physical core count and memory pressure.

    Args:
        configured_workers: The configured worker count, or None for auto-detection

    Returns:
        Number of concurrently processed files (>= 1)

    """
    if configured_workers is not None:
        if configured_workers < 1:
            msg = f"Concurrency limit must be >= 1, got {configured_workers}"
            raise ValueError(msg)
        return configured_workers

    try:
        physical_cores = psutil.cpu_count(logical=False) or 1
        max_workers = max(1, min(physical_cores // 2, MAX_AUTO_FILE_WORKERS))

        memory = psutil.virtual_memory()
        if memory.percent > MEMORY_THRESHOLD:
            LOG.warning("High memory usage detected (%.1f%%), processing one file at a time", memory.percent)
            max_workers = FALLBACK_WORKERS

        LOG.info("Auto configuration: %d physical cores, using %d workers", physical_cores, max_workers)
    except (OSError, AttributeError, ValueError) as e:
        LOG.warning("Failed to detect system specs with psutil: %s. Using fallback of 1 worker.", e)
        return FALLBACK_WORKERS
    else:
        return max_workers


def get_encode_worker_count(task_count: int) -> int:
    """Threads for independent per-height resize/encode work."""
    if task_count <= 1:
        return 1
    try:
        logical_cores = psutil.cpu_count(logical=True) or 1
    except (OSError, AttributeError):
        logical_cores = 1
    return max(1, min(task_count, logical_cores))
