"""Retry transient vector store failures with exponential backoff."""

import time
from functools import wraps
from typing import Callable, Type, TypeVar

from loguru import logger

T = TypeVar("T")

# Substrings of error messages that indicate a retry may succeed. Kept
# specific so that e.g. "invalid connection string" is not retried.
TRANSIENT_PATTERNS = (
    "timeout",
    "timed out",
    "connection refused",
    "connection reset",
    "connection error",
    "rate limit",
    "too many requests",
    "502",
    "503",
    "504",
    "temporarily",
    "unavailable",
)


def retry_with_backoff(
    max_retries: int = 3,
    initial_delay: float = 0.5,
    backoff_factor: float = 2.0,
    max_delay: float = 10.0,
    exceptions: tuple[Type[Exception], ...] = (Exception,),
    retryable: Callable[[Exception], bool] | None = None,
):
    """
    Retry decorator with exponential backoff.

    Args:
        max_retries: Retries after the first attempt
        initial_delay: Seconds to wait before the first retry
        backoff_factor: Multiplier applied to the delay after each retry
        max_delay: Upper bound for a single delay
        exceptions: Exception types that may be retried
        retryable: If given and it returns False, the exception is re-raised at once
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            delay = initial_delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if retryable is not None and not retryable(e):
                        raise
                    if attempt == max_retries:
                        logger.error(
                            f"All {max_retries + 1} attempts failed for {func.__name__}: {e}"
                        )
                        raise

                    logger.warning(
                        f"Attempt {attempt + 1}/{max_retries + 1} failed for {func.__name__}: {e}. "
                        f"Retrying in {delay:.2f}s..."
                    )
                    time.sleep(delay)
                    delay = min(delay * backoff_factor, max_delay)

            raise AssertionError("unreachable")

        return wrapper

    return decorator


def is_transient_error(error: Exception) -> bool:
    if isinstance(error, (ConnectionError, TimeoutError)):
        return True
    message = str(error).lower()
    return any(pattern in message for pattern in TRANSIENT_PATTERNS)
