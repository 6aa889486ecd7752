"""Configuration module for the request layer."""

from .constants import (
    DEFAULT_CONCURRENCY,
    DEFAULT_CONTENT_TYPE,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RATE_LIMIT,
    DEFAULT_RETRY_DELAY,
    DEFAULT_TIMEOUT,
)
from .settings import ClientSettings, get_settings

__all__ = [
    "ClientSettings",
    "get_settings",
    "DEFAULT_CONCURRENCY",
    "DEFAULT_CONTENT_TYPE",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_RATE_LIMIT",
    "DEFAULT_RETRY_DELAY",
    "DEFAULT_TIMEOUT",
]
