"""
Retry Logic
Backoff for storage reads that gate the start of a sync run

bol.com calls are NOT wrapped here: the transport surfaces RateLimitError
and the caller decides. Writes are not retried either, a repeated insert
would not be atomic-once.
"""
import inspect
import logging
from functools import wraps

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    before_sleep_log,
)

logger = logging.getLogger(__name__)


def with_retry(max_attempts=3, min_wait=1, max_wait=10):
    """
    Generic retry decorator for sync or async callables.

    Usage:
        @with_retry(max_attempts=3, min_wait=1, max_wait=5)
        def list_active_customers(self):
            ...
    """
    def decorator(func):
        retrying = retry(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True
        )

        @retrying
        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            return await func(*args, **kwargs)

        @retrying
        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            return func(*args, **kwargs)

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
