"""Minimum-interval Rate Limiter.

Spaces requests at least 1/rate seconds apart:
- The gap is measured from the previous acquire, not from a token allowance
- No burst: an idle period does not bank extra requests
- The whole read-wait-update sequence runs under one lock
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field

from resilient_http.observability.logger import get_logger

logger = get_logger(__name__)


@dataclass
class RateLimiter:
    """Last-request-time rate limiter.

    Usage:
        limiter = RateLimiter(requests_per_second=2.0)

        # Acquire before making request
        await limiter.acquire()
        await make_request()
    """

    # Configuration
    requests_per_second: float | None = None  # None = unlimited

    # State
    _last_request: float | None = field(default=None, init=False)
    _lock: asyncio.Lock | None = field(default=None, init=False)
    _lock_loop: asyncio.AbstractEventLoop | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        if self.requests_per_second is not None and self.requests_per_second <= 0:
            raise ValueError(
                f"requests_per_second must be positive, got {self.requests_per_second}"
            )

    @property
    def min_interval(self) -> float:
        """Minimum seconds between two requests (0 when unlimited)."""
        if self.requests_per_second is None:
            return 0.0
        return 1.0 / self.requests_per_second

    @property
    def enabled(self) -> bool:
        return self.requests_per_second is not None

    def _get_lock(self) -> asyncio.Lock:
        """Lock bound to the running event loop, recreated when the loop changes."""
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    async def acquire(self) -> float:
        """Wait until the next request may proceed.

        Concurrent callers are serialized: each one computes its wait from
        the timestamp recorded by the caller before it.

        Returns:
            Wait time in seconds (0 if no wait needed)
        """
        if self.requests_per_second is None:
            return 0.0

        async with self._get_lock():
            wait_time = 0.0

            if self._last_request is not None:
                elapsed = time.monotonic() - self._last_request
                if elapsed < self.min_interval:
                    wait_time = self.min_interval - elapsed
                    logger.debug(
                        f"Rate limit: waiting {wait_time:.3f}s",
                        extra={"requests_per_second": self.requests_per_second},
                    )
                    await asyncio.sleep(wait_time)

            # Reset the baseline even when no wait was needed
            self._last_request = time.monotonic()
            return wait_time

    def reset(self) -> None:
        """Forget the last request so the next acquire proceeds immediately."""
        self._last_request = None
