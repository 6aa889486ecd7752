"""Tests for resilient_http/transport.py.

aiohttp is mocked at the session level, the same way API clients are
tested elsewhere: the session's request() returns an async context
manager yielding a fake response.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from resilient_http.core.types import Response
from resilient_http.transport import AiohttpTransport


def make_session(status=200, body=b'{"ok": true}', reason="OK", headers=None):
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.reason = reason
    mock_response.headers = headers or {"Content-Type": "application/json"}
    mock_response.read = AsyncMock(return_value=body)
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = MagicMock()
    mock_session.closed = False
    mock_session.close = AsyncMock()
    mock_session.request = MagicMock(return_value=mock_response)
    return mock_session


class TestAiohttpTransportSend:
    """Tests for send()."""

    @pytest.mark.asyncio
    async def test_send_builds_response(self):
        session = make_session(status=201, body=b'{"id": 7}', reason="Created")
        transport = AiohttpTransport(session=session)

        response = await transport.send(
            "POST", "https://api.test/users", {"X-A": "1"}, '{"name": "Ada"}', 2.0
        )

        assert isinstance(response, Response)
        assert response.status == 201
        assert response.reason == "Created"
        assert response.json() == {"id": 7}
        assert response.headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_send_passes_request_arguments(self):
        session = make_session()
        transport = AiohttpTransport(session=session)

        await transport.send("GET", "https://api.test/x", {"X-A": "1"}, None, 2.5)

        args, kwargs = session.request.call_args
        assert args == ("GET", "https://api.test/x")
        assert kwargs["headers"] == {"X-A": "1"}
        assert kwargs["data"] is None
        assert isinstance(kwargs["timeout"], aiohttp.ClientTimeout)
        assert kwargs["timeout"].total == 2.5

    @pytest.mark.asyncio
    async def test_missing_reason_becomes_empty(self):
        session = make_session(status=500, reason=None, body=b"")
        transport = AiohttpTransport(session=session)

        response = await transport.send("GET", "u", {}, None, 1.0)

        assert response.reason == ""
        assert response.ok is False

    @pytest.mark.asyncio
    async def test_timeout_propagates(self):
        """Timeouts are raised to the caller for classification."""
        session = make_session()
        session.request = MagicMock(side_effect=TimeoutError())
        transport = AiohttpTransport(session=session)

        with pytest.raises(TimeoutError):
            await transport.send("GET", "u", {}, None, 1.0)


class TestAiohttpTransportSession:
    """Tests for session ownership."""

    @pytest.mark.asyncio
    async def test_lazily_creates_session(self):
        created = make_session()
        transport = AiohttpTransport()

        with patch("resilient_http.transport.aiohttp.ClientSession", return_value=created):
            session = await transport._get_session()
            assert session is created
            assert await transport._get_session() is created

        await transport.close()
        created.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_shared_session_not_closed(self):
        """A caller-supplied session is left open."""
        session = make_session()

        async with AiohttpTransport(session=session) as transport:
            await transport.send("GET", "u", {}, None, 1.0)

        session.close.assert_not_called()

    @pytest.mark.asyncio
    async def test_recreates_closed_session(self):
        stale = make_session()
        stale.closed = True
        fresh = make_session()
        transport = AiohttpTransport(session=stale)

        with patch("resilient_http.transport.aiohttp.ClientSession", return_value=fresh):
            assert await transport._get_session() is fresh

        await transport.close()
        fresh.close.assert_awaited_once()
