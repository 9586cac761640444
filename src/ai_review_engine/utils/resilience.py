"""
Retry with exponential backoff for calls to external collaborators.

Only errors marked retryable (server errors, rate limiting) are retried;
anything else propagates immediately and is fatal for the run.
"""

import logging
import time
from typing import Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


class RetryableError(Exception):
    """A transient failure of an external call."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @classmethod
    def from_status(cls, status_code: int, message: str = "") -> Optional["RetryableError"]:
        """Build an error for a retryable HTTP status, or None for any other status."""
        if status_code in RETRYABLE_STATUS:
            return cls(message or f"HTTP {status_code}", status_code)
        return None


def backoff_delay(
    attempt: int,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
) -> float:
    """Delay before retrying after the given 0-based attempt."""
    return min(base_delay * (exponential_base ** attempt), max_delay)


def retry_call(
    func: Callable[..., T],
    *args,
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    exceptions: tuple = (RetryableError,),
    sleep: Callable[[float], None] = time.sleep,
    **kwargs,
) -> T:
    """
    Call ``func`` and retry it on transient errors.

    Args:
        func: The function to call.
        max_retries: Maximum number of attempts (default: 3).
        base_delay: Initial delay in seconds between attempts.
        max_delay: Maximum delay in seconds between attempts.
        exponential_base: Base for the exponential backoff.
        exceptions: Exception types that are retried.
        sleep: Function used to wait between attempts.

    Returns:
        The function's result.

    Raises:
        The last exception once attempts are exhausted, or any exception
        not listed in ``exceptions`` immediately.
    """
    name = getattr(func, "__name__", repr(func))
    attempts = max(1, max_retries)

    for attempt in range(attempts):
        try:
            result = func(*args, **kwargs)
            if attempt > 0:
                logger.info(f"{name} succeeded on attempt {attempt + 1}/{attempts}")
            return result
        except exceptions as e:
            if attempt == attempts - 1:
                logger.error(f"{name} failed after {attempts} attempts: {e}")
                raise

            delay = backoff_delay(attempt, base_delay, max_delay, exponential_base)
            logger.warning(
                f"{name} failed on attempt {attempt + 1}/{attempts}: {e}. "
                f"Retrying in {delay:.1f}s..."
            )
            sleep(delay)

    raise AssertionError("unreachable")
