"""
Retry with exponential backoff for idempotent reads.

Only transient failures are retried: transport errors (connection refused,
timeouts) and 5xx responses. Client errors are raised on the first attempt.
Mutations must not be wrapped in this helper.
"""

import asyncio
from typing import Awaitable, Callable, TypeVar

import httpx

from ticketing.client.api_error import APIError
from ticketing.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    return isinstance(exc, APIError) and exc.status_code >= 500


async def retry_request(
    request_fn: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    delay: float = 1.0,
) -> T:
    """Call ``request_fn`` up to ``max_retries`` times, sleeping ``delay * 2**attempt`` between tries."""
    for attempt in range(max_retries):
        try:
            return await request_fn()
        except (httpx.TransportError, APIError) as exc:
            if not is_transient(exc) or attempt == max_retries - 1:
                raise
            wait = delay * (2 ** attempt)
            logger.info("request_retry", attempt=attempt + 1, wait_seconds=wait, error=str(exc))
            await asyncio.sleep(wait)
    raise ValueError("max_retries must be at least 1")
