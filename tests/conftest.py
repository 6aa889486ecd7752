"""Pytest configuration and shared fixtures."""

import json
from collections.abc import Mapping

import pytest

from resilient_http.config.settings import ClientSettings
from resilient_http.core.types import Response


def json_response(payload, status: int = 200, reason: str = "OK") -> Response:
    """Build a Response carrying a JSON body."""
    return Response(status=status, body=json.dumps(payload).encode(), reason=reason)


class FakeTransport:
    """Transport that replays queued outcomes and records every call.

    Each queued outcome is either a Response (returned) or an exception
    (raised). The last outcome repeats once the queue is drained.
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes) or [json_response({})]
        self.calls: list[dict] = []
        self.closed = False

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body,
        timeout: float,
    ) -> Response:
        self.calls.append(
            {
                "method": method,
                "url": url,
                "headers": dict(headers),
                "body": body,
                "timeout": timeout,
            }
        )
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def settings() -> ClientSettings:
    """Settings isolated from the environment, with fast backoff."""
    return ClientSettings(
        _env_file=None,
        base_url="https://api.test",
        headers={},
        timeout=5.0,
        max_retries=3,
        retry_delay=0.001,
        rate_limit=None,
        concurrency=5,
    )


@pytest.fixture
def fake_transport() -> FakeTransport:
    """Transport that always answers 200 with an empty JSON object."""
    return FakeTransport()
