"""Fixed-interval bounded retry for per-file work."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from ..config.constants import DEFAULT_RETRY_ATTEMPTS, DEFAULT_RETRY_INTERVAL
from .base import ConfigurationError, ProcessingError

if TYPE_CHECKING:
    from collections.abc import Callable

LOG = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Constant backoff with a fixed maximum number of attempts."""

    interval: float = DEFAULT_RETRY_INTERVAL
    max_attempts: int = DEFAULT_RETRY_ATTEMPTS
    retry_on: tuple[type[BaseException], ...] = (ProcessingError, OSError)

    def __post_init__(self) -> None:
        """Validate the policy."""
        if self.max_attempts < 1:
            msg = f"max_attempts must be >= 1, got {self.max_attempts}"
            raise ValueError(msg)
        if self.interval < 0:
            msg = f"interval must be >= 0, got {self.interval}"
            raise ValueError(msg)


class RetryError(Exception):
    """All attempts failed; ``last_error`` holds the final cause."""

    def __init__(self, message: str, *, attempts: int, last_error: BaseException) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


def run_with_retry(
    func: Callable[[], T],
    policy: RetryPolicy,
    *,
    description: str = "operation",
    sleep: Callable[[float], None] | None = None,
) -> tuple[T, int]:
    """
    Call ``func`` until it succeeds or the policy is exhausted.

    Returns the result together with the number of attempts used.
    ``ConfigurationError`` and exceptions outside ``policy.retry_on`` are
    raised immediately.

    Raises:
        RetryError: when every attempt failed with a retryable error

    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return func(), attempt
        except ConfigurationError:
            raise
        except policy.retry_on as e:
            if attempt >= policy.max_attempts:
                msg = f"{description} failed after {attempt} attempts: {e}"
                raise RetryError(msg, attempts=attempt, last_error=e) from e
            LOG.warning("Attempt %d/%d for %s failed: %s", attempt, policy.max_attempts, description, e)
            (sleep or time.sleep)(policy.interval)
