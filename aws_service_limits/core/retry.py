"""
Throttling-aware retry with quadratic backoff.

Only recognized rate-limit errors are retried. Attempt k (1-indexed) waits
k**2 seconds before the next try; every other error propagates immediately.
"""

import functools
import logging
import time
from typing import Any, Callable, TypeVar

from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 5

THROTTLING_ERROR_CODES = frozenset({
    "TooManyRequestsException",
    "ThrottlingException",
    "Throttling",
    "RequestLimitExceeded",
})


def is_throttling_error(exc: BaseException) -> bool:
    """Return True if the error signals an upstream rate limit."""
    if isinstance(exc, ClientError):
        code = exc.response.get("Error", {}).get("Code", "")
        if code in THROTTLING_ERROR_CODES:
            return True
    message = str(exc)
    return any(code in message for code in THROTTLING_ERROR_CODES)


def backoff_delay(attempt: int) -> int:
    """Seconds to wait after the given (1-indexed) throttled attempt."""
    return attempt * attempt


def call_with_backoff(
    func: Callable[..., T],
    *args: Any,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    sleep: Callable[[float], None] = time.sleep,
    **kwargs: Any
) -> T:
    """Call ``func`` retrying throttled attempts with quadratic backoff.
    
    Args:
        func: Callable to invoke
        *args: Positional arguments for ``func``
        max_attempts: Total number of attempts before giving up
        sleep: Sleep function, replaceable in tests
        **kwargs: Keyword arguments for ``func``
        
    Returns:
        Result of the first successful attempt
        
    Raises:
        Exception: The first non-throttling error, or the last throttling
            error once all attempts are exhausted
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    for attempt in range(1, max_attempts + 1):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            if not is_throttling_error(e) or attempt == max_attempts:
                raise
            delay = backoff_delay(attempt)
            logger.debug(
                "Throttled on attempt %d/%d, retrying in %ds: %s",
                attempt, max_attempts, delay, e
            )
            sleep(delay)

    # Unreachable: the final attempt either returns or raises
    raise AssertionError("retry loop exited without a result")


def with_backoff(
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    sleep: Callable[[float], None] = time.sleep
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator form of :func:`call_with_backoff`."""
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            return call_with_backoff(
                func, *args, max_attempts=max_attempts, sleep=sleep, **kwargs
            )
        return wrapper
    return decorator
