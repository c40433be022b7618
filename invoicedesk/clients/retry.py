from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable, TypeVar

from invoicedesk.services.exceptions import DownstreamServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RATE_LIMIT_STATUS = 429


def is_rate_limited(exc: Exception) -> bool:
    return isinstance(exc, DownstreamServiceError) and exc.status_code == RATE_LIMIT_STATUS


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 3,
    initial_delay: float = 1.0,
    should_retry: Callable[[Exception], bool] = is_rate_limited,
) -> T:
    """Await ``fn`` and retry it with exponential backoff plus jitter.

    Only exceptions accepted by ``should_retry`` are retried; anything else,
    and the last failure once ``max_retries`` is exhausted, propagates.
    """

    attempt = 0
    while True:
        try:
            return await fn()
        except Exception as exc:
            attempt += 1
            if attempt > max_retries or not should_retry(exc):
                raise
            delay = initial_delay * (2 ** attempt) + random.uniform(0, initial_delay)
            logger.warning(
                "Retry %s/%s after %.2fs due to error: %s", attempt, max_retries, delay, exc
            )
            await asyncio.sleep(delay)
