"""
Bounded retry with exponential backoff.

Used for operations that can lose a race against a concurrent request,
such as creating a user row that another request is creating at the same time.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry configuration.

    Attributes:
        max_attempts: Total attempts including the first one
        base_delay: Delay in seconds before the second attempt
        multiplier: Factor applied to the delay after each failed attempt
        max_delay: Upper bound for a single delay
        jitter: Whether to randomize each delay in [0, delay]
    """

    max_attempts: int = 3
    base_delay: float = 0.05
    multiplier: float = 2.0
    max_delay: float = 1.0
    jitter: bool = True

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be non-negative")

    def delay_for(self, attempt: int) -> float:
        """Return the delay to wait after the given failed attempt (1-indexed)."""
        delay = min(self.base_delay * (self.multiplier ** (attempt - 1)), self.max_delay)
        if self.jitter:
            delay = random.uniform(0, delay)
        return delay


NO_RETRY = RetryPolicy(max_attempts=1, base_delay=0, jitter=False)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    retry_on: tuple[type[BaseException], ...],
    description: str = "operation",
) -> T:
    """
    Run an async operation, retrying on the given exception types.

    Args:
        operation: Zero-argument coroutine factory
        policy: Retry bounds and backoff
        retry_on: Exception types that trigger a retry; anything else propagates
        description: Label used in log messages

    Returns:
        The operation's result

    Raises:
        The last retryable exception once attempts are exhausted.
    """
    attempt = 1
    while True:
        try:
            return await operation()
        except retry_on as e:
            if attempt >= policy.max_attempts:
                logger.error(
                    "%s failed after %d attempts: %s", description, attempt, e
                )
                raise
            delay = policy.delay_for(attempt)
            logger.info(
                "%s attempt %d failed (%s), retrying in %.3fs",
                description, attempt, e, delay,
            )
            await asyncio.sleep(delay)
            attempt += 1
