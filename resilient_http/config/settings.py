"""Client settings using Pydantic. No side effects at import time."""

from functools import lru_cache
from typing import Annotated

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_CONCURRENCY,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY,
    DEFAULT_TIMEOUT,
    ENV_PREFIX,
)


class ClientSettings(BaseSettings):
    """Request client settings with validation.

    Settings are loaded from RESILIENT_HTTP_* environment variables and
    the .env file. No side effects at class definition time - .env is
    loaded only when ClientSettings() is instantiated.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars
    )

    # === Target ===
    base_url: str = ""
    headers: dict[str, str] = Field(default_factory=dict)

    # === Timeouts ===
    timeout: Annotated[float, Field(gt=0, description="Per-attempt timeout in seconds")] = (
        DEFAULT_TIMEOUT
    )

    # === Retry ===
    max_retries: Annotated[int, Field(ge=1, description="Total attempts per request")] = (
        DEFAULT_MAX_RETRIES
    )
    retry_delay: Annotated[float, Field(gt=0, description="Base backoff delay in seconds")] = (
        DEFAULT_RETRY_DELAY
    )

    # === Rate Limits ===
    rate_limit: Annotated[float, Field(gt=0)] | None = None  # Requests per second

    # === Batch ===
    concurrency: Annotated[int, Field(gt=0)] = DEFAULT_CONCURRENCY

    @property
    def has_rate_limit(self) -> bool:
        """Check if a rate limit is configured."""
        return self.rate_limit is not None


@lru_cache
def get_settings() -> ClientSettings:
    """Get cached settings instance.

    This is the recommended way to access settings to avoid
    repeated .env file parsing.
    """
    return ClientSettings()
