"""
Retry utilities for handling transient upstream failures
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from src.logging import get_logger

from .errors import GatewayError

logger = get_logger('RETRY')


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0

    def delay_for(self, attempt: int) -> float:
        return backoff_delay(attempt, self.base_delay, self.max_delay)


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """
    Delay to wait after a failed attempt.

    Args:
        attempt: 1-based number of the attempt that just failed
        base_delay: Delay after the first failure
        max_delay: Cap applied to every delay

    Returns:
        base_delay * 2 ** (attempt - 1), capped at max_delay
    """
    if attempt < 1:
        raise ValueError("attempt numbers start at 1")
    return min(base_delay * (2 ** (attempt - 1)), max_delay)


async def with_retry(
    operation: Callable[[], Awaitable[Any]],
    policy: RetryPolicy,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    on_retry: Optional[Callable[[int, GatewayError, float], None]] = None
) -> Any:
    """
    Run an async operation, retrying retryable GatewayErrors with exponential backoff.

    Non-retryable errors propagate immediately. After policy.max_attempts
    attempts the last error propagates.
    """
    attempt = 1
    while True:
        try:
            return await operation()
        except GatewayError as e:
            if not e.retryable:
                raise
            if attempt >= policy.max_attempts:
                logger.error(f"giving up | attempts:{attempt} | kind:{e.kind.value} | {e.message}")
                raise

            delay = policy.delay_for(attempt)
            logger.warning(f"attempt {attempt} failed | kind:{e.kind.value} | retrying in {delay:.2f}s")
            if on_retry is not None:
                on_retry(attempt, e, delay)
            await sleep(delay)
            attempt += 1
