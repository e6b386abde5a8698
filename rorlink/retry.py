"""
Retry logic with exponential backoff for data downloads.

The registry dump, federation metadata and SPARQL export come from public
services that occasionally time out or rate limit. Transient failures are
retried with a growing delay; a server supplied Retry-After wins when it is
longer than the computed delay.
"""

import time
import functools
from typing import Callable, Optional, Tuple, Type

RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})

TRANSIENT_KEYWORDS = (
    "timeout",
    "timed out",
    "connection",
    "temporary failure",
    "service unavailable",
    "too many requests",
)


class RetryError(Exception):
    """Raised when all retry attempts are exhausted."""


class RetryableHTTPError(Exception):
    """HTTP response whose status code is worth another attempt."""

    def __init__(self, status_code: int, url: str, retry_after: Optional[float] = None):
        super().__init__(f"HTTP {status_code} for {url}")
        self.status_code = status_code
        self.url = url
        self.retry_after = retry_after


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Seconds from a Retry-After header; HTTP-date values are ignored."""
    if not value:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def exponential_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable] = None,
):
    """
    Decorator retrying a download with exponential backoff.

    Args:
        max_retries: Retries after the first attempt (0 = try once)
        base_delay: Delay before the first retry, in seconds
        max_delay: Upper bound for any single delay, in seconds
        exponential_base: Factor applied to the delay after each retry
        exceptions: Exception types that trigger a retry
        on_retry: Optional callback(attempt, exception, delay)

    Raises:
        RetryError: chained to the last failure once retries are used up
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            delay = base_delay
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= max_retries:
                        raise RetryError(
                            f"Gave up after {attempt + 1} attempts: {e}"
                        ) from e
                    attempt += 1

                    wait = delay
                    retry_after = getattr(e, "retry_after", None)
                    if retry_after is not None and retry_after > wait:
                        wait = retry_after
                    wait = min(wait, max_delay)

                    if on_retry:
                        on_retry(attempt, e, wait)
                    time.sleep(wait)
                    delay *= exponential_base

        return wrapper
    return decorator


def is_transient_error(exception: Optional[BaseException]) -> bool:
    """
    True when an error, or any error it was raised from, looks transient.

    Download helpers wrap the underlying failure (RetryError, ValueError),
    so the cause chain is followed.
    """
    seen = set()
    while exception is not None and id(exception) not in seen:
        seen.add(id(exception))
        if isinstance(exception, RetryableHTTPError):
            return True
        message = str(exception).lower()
        if any(keyword in message for keyword in TRANSIENT_KEYWORDS):
            return True
        exception = exception.__cause__ or exception.__context__
    return False


def should_retry_http_status(status_code: int) -> bool:
    """Server errors, timeouts and rate limiting are retried."""
    return status_code in RETRYABLE_STATUS_CODES
