"""
Resilient HTTP client

Wraps a plain HTTP call with rate limiting, a per-attempt timeout and
exponential-backoff retries, and runs many calls in bounded batches.

Usage:
    from resilient_http import RequestClient

    async with RequestClient("https://api.example.com", rate_limit=2.0) as client:
        user = await client.get("/users/1")
        created = await client.post("/users", {"name": "Ada"})
        batch = await client.batch(["/users/1", "/users/2"], client.get)

Failure handling:
    - 4xx responses raise ClientFaultError immediately (no retries)
    - 5xx, network errors and timeouts are retried with backoff
    - RetryExhaustedError once every attempt has failed
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any, TypeVar

from resilient_http.config.constants import DEFAULT_CONTENT_TYPE
from resilient_http.config.settings import ClientSettings, get_settings
from resilient_http.core.errors import (
    RequestError,
    RequestTimeoutError,
    TransientError,
    classify_exception,
    error_for_status,
)
from resilient_http.core.types import BatchResult
from resilient_http.observability.logger import get_logger, log_context
from resilient_http.observability.metrics import RequestMetrics
from resilient_http.resilience.batch import BatchScheduler, ProgressCallback
from resilient_http.resilience.rate_limiter import RateLimiter
from resilient_http.resilience.retry import RetryConfig, RetryExecutor
from resilient_http.transport import AiohttpTransport, Transport

logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class RequestClient:
    """HTTP client with rate limiting, retries and batch execution."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        rate_limit: float | None = None,
        headers: Mapping[str, str] | None = None,
        concurrency: int | None = None,
        settings: ClientSettings | None = None,
        transport: Transport | None = None,
    ):
        """
        Initialize the client.

        Explicit arguments override the matching fields of `settings`
        (or of the environment-derived settings when none are given).

        Args:
            base_url: Prefix joined to every endpoint
            timeout: Per-attempt timeout in seconds
            max_retries: Total attempts per request
            retry_delay: Base backoff delay in seconds
            rate_limit: Maximum requests per second (None = unlimited)
            headers: Default headers sent with every request
            concurrency: Default batch window size
            settings: Base settings (RESILIENT_HTTP_* env vars if omitted)
            transport: Transport to use (aiohttp if omitted)
        """
        base = settings if settings is not None else get_settings()
        overrides = {
            key: value
            for key, value in {
                "base_url": base_url,
                "timeout": timeout,
                "max_retries": max_retries,
                "retry_delay": retry_delay,
                "rate_limit": rate_limit,
                "headers": dict(headers) if headers is not None else None,
                "concurrency": concurrency,
            }.items()
            if value is not None
        }
        self.settings = ClientSettings(**{**base.model_dump(), **overrides}) if overrides else base

        self.metrics = RequestMetrics()
        self.rate_limiter = RateLimiter(requests_per_second=self.settings.rate_limit)
        self.retry_executor = RetryExecutor(
            RetryConfig(
                max_attempts=self.settings.max_retries,
                base_delay=self.settings.retry_delay,
            ),
            on_retry=lambda attempt, delay, error: self.metrics.record_retry(),
        )
        self.scheduler = BatchScheduler(concurrency=self.settings.concurrency)
        self.transport: Transport = transport if transport is not None else AiohttpTransport()

    @property
    def base_url(self) -> str:
        return self.settings.base_url

    @property
    def timeout(self) -> float:
        return self.settings.timeout

    async def close(self) -> None:
        """Release the transport."""
        await self.transport.close()

    async def __aenter__(self) -> "RequestClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _build_headers(self, headers: Mapping[str, str] | None) -> dict[str, str]:
        """Merge default content type, client headers and per-call headers."""
        return {
            "Content-Type": DEFAULT_CONTENT_TYPE,
            **self.settings.headers,
            **(headers or {}),
        }

    async def _send_once(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: str | bytes | None,
        timeout: float,
    ) -> Any:
        """One attempt: call the transport and classify any failure."""
        self.metrics.record_attempt()

        try:
            response = await self.transport.send(method, url, headers, body, timeout)
        except RequestError:
            raise
        except Exception as e:
            error = classify_exception(e, url=url, method=method, timeout_seconds=timeout)
            if isinstance(error, RequestTimeoutError):
                self.metrics.record_timeout()
            raise error from e

        if not response.ok:
            reason = f": {response.reason}" if response.reason else ""
            raise error_for_status(
                response.status,
                f"HTTP {response.status}{reason}",
                url=url,
                method=method,
            )

        try:
            return response.json()
        except ValueError as e:
            raise TransientError(
                f"Invalid JSON in response: {e}",
                status_code=response.status,
                url=url,
                method=method,
                cause=e,
            ) from e

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        *,
        headers: Mapping[str, str] | None = None,
        body: str | bytes | None = None,
        json_body: Any = None,
        timeout: float | None = None,
    ) -> Any:
        """Make a request with rate limiting, timeout and retries.

        Args:
            endpoint: Path appended to base_url
            method: HTTP method
            headers: Per-call headers (override defaults)
            body: Raw request body
            json_body: Value to JSON-encode as the body (takes precedence over body)
            timeout: Per-attempt timeout override in seconds

        Returns:
            Decoded JSON body (None for an empty body)

        Raises:
            ClientFaultError: 4xx response
            RetryExhaustedError: Every attempt failed
        """
        method = method.upper()
        url = f"{self.base_url}{endpoint}"
        merged_headers = self._build_headers(headers)
        if json_body is not None:
            body = json.dumps(json_body)
        effective_timeout = timeout if timeout is not None else self.timeout

        with log_context(endpoint=endpoint, method=method):
            waited = await self.rate_limiter.acquire()
            if waited > 0:
                self.metrics.record_rate_limit_wait(waited)

            logger.debug(f"Requesting {url}")

            try:
                result = await self.retry_executor.execute(
                    lambda: self._send_once(method, url, merged_headers, body, effective_timeout)
                )
            except RequestError as e:
                self.metrics.record_failure(e)
                logger.error(f"Request failed: {e}", extra=e.to_dict())
                raise

        self.metrics.record_success()
        return result

    # ==================== Convenience methods ====================

    async def get(self, endpoint: str, headers: Mapping[str, str] | None = None) -> Any:
        return await self.request(endpoint, "GET", headers=headers)

    async def post(
        self, endpoint: str, data: Any, headers: Mapping[str, str] | None = None
    ) -> Any:
        return await self.request(endpoint, "POST", headers=headers, body=json.dumps(data))

    async def put(
        self, endpoint: str, data: Any, headers: Mapping[str, str] | None = None
    ) -> Any:
        return await self.request(endpoint, "PUT", headers=headers, body=json.dumps(data))

    async def delete(self, endpoint: str, headers: Mapping[str, str] | None = None) -> Any:
        return await self.request(endpoint, "DELETE", headers=headers)

    # ==================== Batch ====================

    async def batch(
        self,
        items: Iterable[T],
        operation: Callable[[T], Awaitable[R]],
        concurrency: int | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> BatchResult[R]:
        """
        Run operation over items in windows of `concurrency`.

        Args:
            items: Items to process
            operation: Async function for a single item (e.g. client.get)
            concurrency: Window size (defaults to settings.concurrency)
            progress_callback: Optional callback(completed, total)

        Returns:
            BatchResult; item failures are collected, never raised
        """
        return await self.scheduler.run(
            items,
            operation,
            concurrency=concurrency,
            progress_callback=progress_callback,
        )
