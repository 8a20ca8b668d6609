"""Bounded retry policy handed to outbound clients by their caller."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry an async operation a bounded number of times.

    Backoff between attempts is ``backoff_seconds * 2 ** (attempt - 1)``.
    ``max_attempts=1`` means no retry at all.
    """

    max_attempts: int = 1
    backoff_seconds: float = 0.0
    retry_on: tuple[type[BaseException], ...] = field(default=(Exception,))

    def delay_for(self, attempt: int) -> float:
        return self.backoff_seconds * (2 ** (attempt - 1))

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        attempt = 1
        while True:
            try:
                return await operation()
            except self.retry_on as exc:
                if attempt >= self.max_attempts:
                    raise
                delay = self.delay_for(attempt)
                logger.warning(
                    "Attempt %d/%d failed (%s), retrying in %.2fs",
                    attempt,
                    self.max_attempts,
                    exc,
                    delay,
                )
                if delay > 0:
                    await asyncio.sleep(delay)
                attempt += 1


NO_RETRY = RetryPolicy()
