"""
Retry helper for flaky remote calls (embedding endpoints, Qdrant upserts, email API).
"""

import functools
import random
import time
from typing import Callable, ParamSpec, TypeVar

from api.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
P = ParamSpec("P")


class RetryExhaustedError(Exception):
    """Raised when all retry attempts have been exhausted."""

    def __init__(self, attempts: int, last_error: Exception, operation: str = "remote call"):
        self.attempts = attempts
        self.last_error = last_error
        self.operation = operation
        super().__init__(
            f"{operation} failed after {attempts} attempts. "
            f"Last error: {type(last_error).__name__}: {last_error}"
        )


def backoff_delay(attempt: int, base_seconds: float, max_seconds: float, jitter_seconds: float) -> float:
    """Exponential backoff for ``attempt`` (1-based), capped, with random jitter."""
    delay = base_seconds * (2 ** (attempt - 1)) + random.uniform(0, jitter_seconds)
    return min(delay, max_seconds)


def with_retry(
    max_retries: int = 3,
    base_delay_seconds: float = 1.0,
    max_delay_seconds: float = 10.0,
    jitter_seconds: float = 1.0,
    retryable_exceptions: tuple = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
):
    """
    Decorator that retries a function with exponential backoff.

    Args:
        max_retries: Total number of attempts
        base_delay_seconds: Delay before the second attempt (doubles each retry)
        max_delay_seconds: Upper bound for a single delay
        jitter_seconds: Random extra delay added to each wait
        retryable_exceptions: Exception types that trigger a retry; others propagate
        sleep: Sleep function (injectable for tests)

    Usage:
        @with_retry(max_retries=3)
        def upsert_batch(points):
            client.upsert(...)
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            operation = func.__name__
            last_error: Exception | None = None

            for attempt in range(1, max_retries + 1):
                try:
                    result = func(*args, **kwargs)
                    if attempt > 1:
                        logger.info(f"{operation} succeeded on attempt {attempt}")
                    return result
                except retryable_exceptions as e:
                    last_error = e
                    logger.warning(
                        f"{operation} failed on attempt {attempt}/{max_retries}: "
                        f"{type(e).__name__}: {e}"
                    )

                if attempt < max_retries:
                    delay = backoff_delay(attempt, base_delay_seconds, max_delay_seconds, jitter_seconds)
                    logger.info(f"Retrying {operation} in {delay:.1f}s...")
                    sleep(delay)

            raise RetryExhaustedError(max_retries, last_error, operation)

        return wrapper

    return decorator
