"""Exponential Backoff Retry Executor.

Provides automatic retry with exponential backoff:
- Bounded number of attempts
- Delay doubles after each failed attempt
- Client faults (4xx) are never retried
- The final failure is wrapped with the attempt count
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from resilient_http.config.constants import (
    BACKOFF_MULTIPLIER,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY,
)
from resilient_http.core.errors import (
    RetryExhaustedError,
    is_client_fault_status,
    status_code_of,
)
from resilient_http.observability.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

RetryHook = Callable[[int, float, Exception], None]


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = DEFAULT_MAX_RETRIES
    base_delay: float = DEFAULT_RETRY_DELAY  # seconds

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.base_delay <= 0:
            raise ValueError(f"base_delay must be positive, got {self.base_delay}")

    def calculate_delay(self, attempt: int) -> float:
        """
        Calculate the delay after a failed attempt.

        Args:
            attempt: Attempt that just failed (1-indexed)

        Returns:
            Delay in seconds: base_delay * 2^(attempt - 1)
        """
        return self.base_delay * (BACKOFF_MULTIPLIER ** (attempt - 1))


@dataclass
class RetryExecutor:
    """Retry executor with exponential backoff.

    Usage:
        executor = RetryExecutor(RetryConfig(max_attempts=3, base_delay=1.0))

        result = await executor.execute(lambda: fetch(url))
    """

    config: RetryConfig = field(default_factory=RetryConfig)
    on_retry: RetryHook | None = None  # Called as (attempt, delay, error) before each backoff

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run operation until it succeeds or the policy gives up.

        The attempt counter lives in this call, so one executor can serve
        many concurrent requests.

        Args:
            operation: Zero-argument async callable, invoked once per attempt

        Returns:
            Result of the first successful attempt

        Raises:
            RetryExhaustedError: If the last allowed attempt failed
            Exception: The original error if it was a client fault (4xx)
        """
        max_attempts = self.config.max_attempts

        for attempt in range(1, max_attempts + 1):
            try:
                result = await operation()
            except Exception as e:
                if attempt >= max_attempts:
                    logger.warning(
                        f"Max attempts ({max_attempts}) exhausted",
                        extra={"error": str(e), "error_type": type(e).__name__},
                    )
                    raise RetryExhaustedError(max_attempts, e) from e

                if is_client_fault_status(status_code_of(e)):
                    logger.debug(f"Non-retryable client fault: {e}")
                    raise

                delay = self.config.calculate_delay(attempt)
                logger.info(
                    f"Attempt {attempt} failed, retrying in {delay:.2f}s",
                    extra={"error_type": type(e).__name__},
                )
                if self.on_retry is not None:
                    self.on_retry(attempt, delay, e)

                await asyncio.sleep(delay)
            else:
                return result

        # Unreachable: the last attempt either returns or raises
        raise RuntimeError("Retry logic error")
