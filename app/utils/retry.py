"""
Retry helper for data-store calls

Only transient upstream/connection failures are retried; every other error
propagates on the first attempt.
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_ERROR_MARKERS = (
    "upstream connect error",
    "remote connection failure",
    "503",
)


def is_transient_error(error: BaseException) -> bool:
    """True when the error message looks like a transient connectivity failure"""
    message = str(error)
    return any(marker in message for marker in TRANSIENT_ERROR_MARKERS)


async def with_retry(
    operation: Callable[[], Union[T, Awaitable[T]]],
    max_retries: int = 3,
    delay: float = 1.0,
    on_retry: Optional[Callable[[], Any]] = None,
) -> T:
    """
    Run a zero-argument operation, retrying transient connection errors

    Args:
        operation: Callable returning a value or an awaitable
        max_retries: Total number of attempts
        delay: Seconds to wait before the first retry; doubles on each retry
        on_retry: Called before every new attempt, e.g. a session rollback so
            the next attempt does not start from a failed transaction

    Returns:
        The operation's result from the first successful attempt
    """
    if max_retries < 1:
        raise ValueError("max_retries must be at least 1")

    last_error: Any = None

    for attempt in range(1, max_retries + 1):
        try:
            result = operation()
            if inspect.isawaitable(result):
                result = await result
            return result
        except Exception as e:
            last_error = e

            if is_transient_error(e) and attempt < max_retries:
                logger.warning(
                    f"🔄 Database connection failed (attempt {attempt}/{max_retries}), retrying in {delay:.1f}s..."
                )
                if on_retry is not None:
                    on_retry()
                await asyncio.sleep(delay)
                delay *= 2  # Exponential backoff
                continue

            raise

    raise last_error
