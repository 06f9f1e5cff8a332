"""
Retry helpers for outbound provider calls.

Only the adapter HTTP layer retries, and only on the exceptions its
RetryConfig names; the orchestrator never re-runs a provider.
"""
from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Tuple, Type

logger = logging.getLogger(__name__)


class RetryConfig:
    """
    Exponential backoff policy.

    Attributes:
        max_attempts: Total attempts, including the first call
        initial_delay: Delay before the first retry in seconds
        max_delay: Upper bound for any single delay
        backoff_factor: Multiplier applied per attempt
        jitter: Scale each delay by a random factor in [0.5, 1.5)
        retryable_exceptions: Exception types that trigger another attempt
    """

    def __init__(
        self,
        max_attempts: int = 1,
        initial_delay: float = 0.25,
        max_delay: float = 2.0,
        backoff_factor: float = 2.0,
        jitter: bool = True,
        retryable_exceptions: Tuple[Type[BaseException], ...] = (Exception,),
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.backoff_factor = backoff_factor
        self.jitter = jitter
        self.retryable_exceptions = retryable_exceptions

    def calculate_delay(self, attempt: int) -> float:
        """Seconds to sleep after the given 0-based failed attempt."""
        delay = min(self.initial_delay * self.backoff_factor ** attempt, self.max_delay)
        if self.jitter:
            delay *= 0.5 + random.random()
        return delay


async def call_with_retry(
    config: RetryConfig,
    func: Callable[..., Awaitable[Any]],
    *args: Any,
    **kwargs: Any,
) -> Any:
    """
    Await func, retrying on the configured exceptions.

    Cancellation is never retried; the last retryable exception is re-raised
    once attempts are exhausted.
    """
    name = getattr(func, "__qualname__", repr(func))
    attempt = 0

    while True:
        try:
            return await func(*args, **kwargs)
        except config.retryable_exceptions as e:
            attempt += 1
            if attempt >= config.max_attempts:
                if config.max_attempts > 1:
                    logger.error(
                        f"{name} failed after {attempt} attempts",
                        extra={'extra_data': {'error': str(e), 'error_type': type(e).__name__}},
                    )
                raise

            delay = config.calculate_delay(attempt - 1)
            logger.warning(
                f"Retrying {name} ({attempt}/{config.max_attempts}) in {delay:.2f}s",
                extra={'extra_data': {'error': str(e), 'error_type': type(e).__name__}},
            )
            await asyncio.sleep(delay)
