"""Retry logic with exponential backoff for relay rate limits.

Only HTTP 429 responses are retried (1s, 2s, 4s). Every other error is
re-raised immediately.
"""

import logging
import time
from typing import Callable, TypeVar

from .errors import APIAccessError

logger = logging.getLogger(__name__)

T = TypeVar('T')

MAX_RETRIES = 3


def retry_on_rate_limit(func: Callable[..., T], *args, **kwargs) -> T:
    """Call ``func`` and retry it while the relay reports a rate limit.

    Args:
        func: The function to execute
        *args: Positional arguments for the function
        **kwargs: Keyword arguments for the function

    Returns:
        The return value of the function

    Raises:
        APIAccessError: If the rate limit persists after 3 retries
        Other exceptions: Passed through immediately without retry

    Example:
        >>> response = retry_on_rate_limit(transport.request, "GET", "/clients")
    """
    for retry_num in range(MAX_RETRIES + 1):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            if not _is_rate_limit_error(e):
                raise

            if retry_num >= MAX_RETRIES:
                logger.error(
                    f"Rate limit persisted after {MAX_RETRIES} retries, giving up"
                )
                raise APIAccessError(f"Relay API failure (after {MAX_RETRIES} retries)")

            wait_time = 2 ** retry_num
            logger.info(
                f"Rate limit hit, retrying in {wait_time}s "
                f"(retry {retry_num + 1}/{MAX_RETRIES})"
            )
            time.sleep(wait_time)

    raise APIAccessError(f"Relay API failure (after {MAX_RETRIES} retries)")


def _is_rate_limit_error(exception: Exception) -> bool:
    """Check if an exception represents a 429 response.

    Args:
        exception: The exception to check

    Returns:
        True if this is a rate limit error, False otherwise
    """
    if getattr(exception, 'status_code', None) == 429:
        return True

    response = getattr(exception, 'response', None)
    if response is not None and getattr(response, 'status_code', None) == 429:
        return True

    error_msg = str(exception).lower()
    return 'too many requests' in error_msg or 'rate limit exceeded' in error_msg
