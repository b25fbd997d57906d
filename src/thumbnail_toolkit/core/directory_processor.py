"""Batch processing: bounded concurrency, per-file retry and failure isolation."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tqdm import tqdm

from .base import ProcessingError, ProcessingResult, ProcessingStatus
from .failure_table import print_failure_table
from .retry import RetryError, RetryPolicy, run_with_retry
from .thermal import get_safe_worker_count

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from .base import MediaProcessor

LOG = logging.getLogger(__name__)


@dataclass
class BatchReport:
    """Outcome of one batch run, one result per input file."""

    results: list[ProcessingResult] = field(default_factory=list)
    elapsed: float = 0.0

    def _with_status(self, status: ProcessingStatus) -> list[ProcessingResult]:
        return [r for r in self.results if r.status is status]

    @property
    def succeeded(self) -> list[ProcessingResult]:
        return self._with_status(ProcessingStatus.SUCCESS)

    @property
    def skipped(self) -> list[ProcessingResult]:
        return self._with_status(ProcessingStatus.SKIPPED)

    @property
    def failed(self) -> list[ProcessingResult]:
        return self._with_status(ProcessingStatus.FAILED)

    @property
    def ok(self) -> bool:
        return not self.failed

    def summary(self) -> str:
        return (
            f"{len(self.results)} files: {len(self.succeeded)} succeeded, "
            f"{len(self.skipped)} skipped, {len(self.failed)} failed in {self.elapsed:.1f}s"
        )


def discover_files(root: Path) -> list[Path]:
    """
    Recursively list every regular file under ``root``, sorted.

    Raises:
        ProcessingError: if ``root`` is missing or not a directory. This is
            the only batch-fatal error.

    """
    if not root.exists():
        msg = f"Input directory does not exist: {root}"
        raise ProcessingError(msg, file_path=root)
    if not root.is_dir():
        msg = f"Input path is not a directory: {root}"
        raise ProcessingError(msg, file_path=root)

    files = sorted(p for p in root.rglob("*") if p.is_file())
    LOG.info("Found %d files under %s", len(files), root)
    return files


def _failed_result(file_path: Path, error: BaseException, attempts: int, started: float) -> ProcessingResult:
    return ProcessingResult(
        source_file=file_path,
        status=ProcessingStatus.FAILED,
        message=str(error),
        attempts=attempts,
        processing_time=time.time() - started,
        error=error if isinstance(error, Exception) else None,
    )


def _process_one(
    processor: MediaProcessor, file_path: Path, destination_root: Path, policy: RetryPolicy
) -> ProcessingResult:
    """Run one file through the processor; never raises for per-file failures."""
    started = time.time()
    try:
        result, attempts = run_with_retry(
            lambda: processor.process_file(file_path, destination_root),
            policy,
            description=str(file_path),
        )
    except RetryError as e:
        LOG.error("Failed to process %s after %d attempts: %s", file_path, e.attempts, e.last_error)  # noqa: TRY400
        return _failed_result(file_path, e.last_error, e.attempts, started)
    except Exception as e:
        # Not retryable (ConfigurationError, programming errors); still isolated to this file
        LOG.exception("Error processing %s", file_path)
        return _failed_result(file_path, e, 1, started)

    result.attempts = attempts
    return result


def _update_progress_description(progress_bar: tqdm, result: ProcessingResult) -> None:
    """Update progress bar description based on result status."""
    name = result.source_file.name
    if result.status is ProcessingStatus.SUCCESS:
        progress_bar.set_description(f"✓ Completed {name}")
    elif result.status is ProcessingStatus.SKIPPED:
        progress_bar.set_description(f"⏭ Skipped {name}")
    else:
        progress_bar.set_description(f"✗ Error {name}")


def _process_single_threaded(
    processor: MediaProcessor,
    files: list[Path],
    destination_root: Path,
    policy: RetryPolicy,
    progress_bar: tqdm,
) -> list[ProcessingResult]:
    """Process files in order on the calling thread."""
    results = []
    for file_path in files:
        progress_bar.set_description(f"Processing {file_path.name}")
        result = _process_one(processor, file_path, destination_root, policy)
        results.append(result)
        _update_progress_description(progress_bar, result)
        progress_bar.update(1)
    return results


def _process_multi_threaded(
    processor: MediaProcessor,
    files: list[Path],
    destination_root: Path,
    policy: RetryPolicy,
    max_workers: int,
    progress_bar: tqdm,
) -> list[ProcessingResult]:
    """Process files on a bounded thread pool; results keep the input order."""
    results: dict[Path, ProcessingResult] = {}

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_file = {
            executor.submit(_process_one, processor, file_path, destination_root, policy): file_path
            for file_path in files
        }

        for future in as_completed(future_to_file):
            file_path = future_to_file[future]
            try:
                result = future.result()
            except Exception as e:
                processor.logger.exception("Error processing %s", file_path)
                result = ProcessingResult(
                    source_file=file_path,
                    status=ProcessingStatus.FAILED,
                    message=f"Threading error: {e}",
                    error=e,
                )
            results[file_path] = result
            _update_progress_description(progress_bar, result)
            progress_bar.update(1)

    return [results[file_path] for file_path in files]


def process_files(
    processor: MediaProcessor,
    files: Iterable[Path],
    destination_root: Path,
    *,
    concurrency: int | None = None,
    retry: RetryPolicy | None = None,
    show_progress: bool = True,
    print_failures: bool = True,
) -> BatchReport:
    """
    Apply ``processor`` to every file with bounded parallelism.

    Each file is retried according to ``retry``. A file that still fails is
    reported as a FAILED result and the batch goes on with the others; this
    function only raises for invalid arguments.

    Args:
        processor: Processor handling one file at a time
        files: Source files
        destination_root: Folder receiving one sub-folder per source file
        concurrency: Files in flight at once; None picks a value from the host
        retry: Retry policy per file (defaults to ``RetryPolicy()``)
        show_progress: Show a tqdm progress bar
        print_failures: Print the failure table when files failed

    Returns:
        BatchReport with results in input order

    """
    file_list = list(files)
    policy = retry if retry is not None else RetryPolicy()
    max_workers = min(get_safe_worker_count(concurrency), max(1, len(file_list)))

    processor.logger.info("Processing %d files with %d workers", len(file_list), max_workers)
    started = time.time()

    progress_bar = tqdm(
        total=len(file_list),
        desc="Generating thumbnails",
        unit="file",
        disable=not show_progress,
        bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}, {rate_fmt}]",
    )
    try:
        if max_workers == 1:
            results = _process_single_threaded(processor, file_list, destination_root, policy, progress_bar)
        else:
            results = _process_multi_threaded(
                processor, file_list, destination_root, policy, max_workers, progress_bar
            )
    finally:
        progress_bar.close()

    report = BatchReport(results=results, elapsed=time.time() - started)
    processor.logger.info("Processing complete: %s", report.summary())

    if print_failures:
        print_failure_table(report.failed)
    return report


def process_directory_unified(
    processor: MediaProcessor,
    root: Path,
    destination_root: Path,
    **kwargs: object,
) -> BatchReport:
    """
    Walk ``root`` recursively and process every file found.

    Keyword arguments are passed on to :func:`process_files`.

    Raises:
        ProcessingError: if ``root`` is missing or not a directory

    """
    files = discover_files(root)
    return process_files(processor, files, destination_root, **kwargs)  # type: ignore[arg-type]
