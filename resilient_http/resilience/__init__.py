"""Resilience components.

Provides the timing and failure handling around each request:
- RateLimiter: Minimum spacing between requests
- RetryExecutor: Exponential backoff that skips client faults
- BatchScheduler: Windowed bounded-concurrency execution
"""

from .batch import BatchScheduler
from .rate_limiter import RateLimiter
from .retry import RetryConfig, RetryExecutor

__all__ = [
    "BatchScheduler",
    "RateLimiter",
    "RetryConfig",
    "RetryExecutor",
]
