"""
Resilient HTTP request layer for automation workloads.

This package provides:
- Rate limiting with a minimum spacing between requests
- Exponential-backoff retries that skip client faults
- Windowed, bounded-concurrency batch execution
- Data formatting helpers for batch inputs
"""

from __future__ import annotations

from .client import RequestClient
from .config import ClientSettings, get_settings
from .core.errors import (
    ClientFaultError,
    ErrorKind,
    RequestError,
    RequestTimeoutError,
    RetryExhaustedError,
    TransientError,
)
from .core.types import BatchItemError, BatchResult, Response
from .resilience import BatchScheduler, RateLimiter, RetryConfig, RetryExecutor
from .transport import AiohttpTransport, Transport

__version__ = "0.1.0"

__all__ = [
    # Client
    "RequestClient",
    "ClientSettings",
    "get_settings",
    # Transport
    "AiohttpTransport",
    "Transport",
    "Response",
    # Resilience
    "BatchScheduler",
    "RateLimiter",
    "RetryConfig",
    "RetryExecutor",
    "BatchItemError",
    "BatchResult",
    # Errors
    "ErrorKind",
    "RequestError",
    "TransientError",
    "ClientFaultError",
    "RequestTimeoutError",
    "RetryExhaustedError",
]
