"""
Bounded retry with a fixed backoff schedule.

Every network-bound step (transcription, extraction, journal formatting,
Notion writes) runs through one RetryPolicy instead of its own loop.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

from .errors import RetryExhaustedError, describe, is_transient

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = (1.0, 5.0, 30.0)


@dataclass
class RetryPolicy:
    """Max attempts, delay sequence and a retryable-predicate.

    Between attempt n and n+1 the policy sleeps ``delays[n-1]``; when there
    are more attempts than delays the last delay is reused. Nothing is slept
    after the final attempt.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    delays: Sequence[float] = DEFAULT_BACKOFF_SECONDS
    is_retryable: Callable[[BaseException], bool] = is_transient
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, repr=False)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given (1-based) failed attempt."""
        if not self.delays:
            return 0.0
        return float(self.delays[min(attempt - 1, len(self.delays) - 1)])

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        label: str = "operation",
    ) -> T:
        """Await ``operation()`` until it succeeds or the policy gives up.

        Raises:
            The original exception if it is not retryable.
            RetryExhaustedError once ``max_attempts`` calls have failed.
        """
        last_error: Optional[BaseException] = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                return await operation()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                last_error = e
                if not self.is_retryable(e):
                    logger.warning(f"{label} failed permanently on attempt {attempt}: {describe(e)}")
                    raise

                logger.warning(
                    f"{label} attempt {attempt}/{self.max_attempts} failed: {describe(e)}"
                )
                if attempt < self.max_attempts:
                    delay = self.delay_for(attempt)
                    logger.info(f"Retrying in {delay:g}s...")
                    await self.sleep(delay)

        logger.error(f"{label} failed after {self.max_attempts} attempts: {describe(last_error)}")
        raise RetryExhaustedError(label, self.max_attempts, last_error) from last_error
