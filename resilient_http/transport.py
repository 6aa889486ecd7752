"""HTTP transport used by RequestClient.

The client talks to the network only through the Transport protocol, so
tests and callers can substitute their own implementation.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from resilient_http.core.types import Response
from resilient_http.observability.logger import get_logger

logger = get_logger(__name__)


class Transport(Protocol):
    """Sends a single HTTP request.

    Implementations enforce `timeout` themselves and raise
    asyncio.TimeoutError when it expires.
    """

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: str | bytes | None,
        timeout: float,
    ) -> Response: ...

    async def close(self) -> None: ...


class AiohttpTransport:
    """Transport backed by a lazily created aiohttp session."""

    def __init__(self, session: aiohttp.ClientSession | None = None):
        """
        Initialize the transport.

        Args:
            session: Existing session to reuse (closed by the caller, not here)
        """
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: str | bytes | None,
        timeout: float,
    ) -> Response:
        """Send one request; the timeout covers the whole exchange."""
        session = await self._get_session()
        client_timeout = aiohttp.ClientTimeout(total=timeout)

        async with session.request(
            method,
            url,
            headers=dict(headers),
            data=body,
            timeout=client_timeout,
        ) as resp:
            payload = await resp.read()
            logger.debug(f"{method} {url} -> {resp.status}")
            return Response(
                status=resp.status,
                body=payload,
                headers=dict(resp.headers),
                reason=resp.reason or "",
            )

    async def close(self) -> None:
        """Close the session if this transport created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "AiohttpTransport":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
