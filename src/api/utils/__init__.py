"""API utilities."""

from api.utils.retry import (
    RetryExhaustedError,
    backoff_delay,
    with_retry,
)

__all__ = [
    "RetryExhaustedError",
    "backoff_delay",
    "with_retry",
]
