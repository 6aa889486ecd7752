"""Tests for resilient_http/resilience/retry.py.

Backoff sleeps are patched so the recorded delays can be asserted
without waiting.
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from resilient_http.core.errors import (
    ClientFaultError,
    RetryExhaustedError,
    TransientError,
)
from resilient_http.resilience.retry import RetryConfig, RetryExecutor


def flaky(*outcomes):
    """Async operation that yields each outcome in turn, raising exceptions."""
    calls = {"count": 0}
    queue = list(outcomes)

    async def operation():
        calls["count"] += 1
        outcome = queue.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    return operation, calls


class TestRetryConfig:
    """Tests for RetryConfig."""

    def test_defaults(self):
        config = RetryConfig()
        assert config.max_attempts == 3
        assert config.base_delay == 1.0

    def test_calculate_delay_doubles(self):
        """delay = base * 2^(attempt - 1)."""
        config = RetryConfig(base_delay=0.5)
        assert config.calculate_delay(1) == 0.5
        assert config.calculate_delay(2) == 1.0
        assert config.calculate_delay(3) == 2.0
        assert config.calculate_delay(4) == 4.0

    def test_invalid_attempts(self):
        with pytest.raises(ValueError):
            RetryConfig(max_attempts=0)

    def test_invalid_delay(self):
        with pytest.raises(ValueError):
            RetryConfig(base_delay=0)


class TestRetryExecutor:
    """Tests for RetryExecutor.execute()."""

    @pytest.mark.asyncio
    async def test_success_first_try(self):
        """Successful operation runs once and never sleeps."""
        operation, calls = flaky("ok")
        executor = RetryExecutor(RetryConfig(max_attempts=3))

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            assert await executor.execute(operation) == "ok"

        assert calls["count"] == 1
        mock_sleep.assert_not_called()

    @pytest.mark.asyncio
    async def test_two_failures_then_success(self):
        """Transient failures are retried with doubling delays."""
        operation, calls = flaky(TransientError("503"), TransientError("503"), {"id": 1})
        executor = RetryExecutor(RetryConfig(max_attempts=3, base_delay=1.0))

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            result = await executor.execute(operation)

        assert result == {"id": 1}
        assert calls["count"] == 3
        assert [c.args[0] for c in mock_sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhausted_after_max_attempts(self):
        """Every attempt fails: RetryExhaustedError wraps the last error."""
        last = TransientError("third")
        operation, calls = flaky(TransientError("first"), TransientError("second"), last)
        executor = RetryExecutor(RetryConfig(max_attempts=3, base_delay=0.5))

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with pytest.raises(RetryExhaustedError) as exc_info:
                await executor.execute(operation)

        assert calls["count"] == 3
        assert exc_info.value.attempts == 3
        assert exc_info.value.cause is last
        assert str(exc_info.value) == "Failed after 3 attempts: third"
        # No sleep after the final attempt
        assert [c.args[0] for c in mock_sleep.await_args_list] == [0.5, 1.0]

    @pytest.mark.asyncio
    async def test_client_fault_not_retried(self):
        """A 4xx error propagates unchanged after a single attempt."""
        fault = ClientFaultError("HTTP 404", status_code=404)
        operation, calls = flaky(fault, "never")
        executor = RetryExecutor(RetryConfig(max_attempts=5))

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with pytest.raises(ClientFaultError) as exc_info:
                await executor.execute(operation)

        assert exc_info.value is fault
        assert calls["count"] == 1
        mock_sleep.assert_not_called()

    @pytest.mark.asyncio
    async def test_foreign_4xx_not_retried(self):
        """Exceptions exposing a 4xx `status` are also not retried."""

        class ResponseError(Exception):
            status = 429

        operation, calls = flaky(ResponseError("too many"), "never")
        executor = RetryExecutor(RetryConfig(max_attempts=3))

        with patch("asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(ResponseError):
                await executor.execute(operation)

        assert calls["count"] == 1

    @pytest.mark.asyncio
    async def test_single_attempt_wraps_client_fault(self):
        """With one attempt the budget check comes first, even for a 4xx."""
        operation, calls = flaky(ClientFaultError("HTTP 400", status_code=400))
        executor = RetryExecutor(RetryConfig(max_attempts=1))

        with pytest.raises(RetryExhaustedError) as exc_info:
            await executor.execute(operation)

        assert calls["count"] == 1
        assert exc_info.value.attempts == 1
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_plain_exceptions_are_retried(self):
        """Exceptions without a status are treated as transient."""
        operation, calls = flaky(ConnectionError("reset"), "ok")
        executor = RetryExecutor(RetryConfig(max_attempts=2))

        with patch("asyncio.sleep", new_callable=AsyncMock):
            assert await executor.execute(operation) == "ok"

        assert calls["count"] == 2

    @pytest.mark.asyncio
    async def test_on_retry_hook(self):
        """on_retry is called with (attempt, delay, error) before each backoff."""
        error = TransientError("blip")
        operation, _ = flaky(error, "ok")
        seen = []
        executor = RetryExecutor(
            RetryConfig(max_attempts=3, base_delay=0.25),
            on_retry=lambda attempt, delay, e: seen.append((attempt, delay, e)),
        )

        with patch("asyncio.sleep", new_callable=AsyncMock):
            await executor.execute(operation)

        assert seen == [(1, 0.25, error)]

    @pytest.mark.asyncio
    async def test_concurrent_executions_are_independent(self):
        """A sibling's success does not reset another call's attempt count."""
        seen = []
        executor = RetryExecutor(
            RetryConfig(max_attempts=3, base_delay=0.001),
            on_retry=lambda attempt, delay, e: seen.append((str(e), attempt)),
        )
        slow, slow_calls = flaky(TransientError("slow"), TransientError("slow"), "slow ok")
        fast, fast_calls = flaky(TransientError("fast"), "fast ok")

        results = await asyncio.gather(executor.execute(slow), executor.execute(fast))

        assert results == ["slow ok", "fast ok"]
        assert slow_calls["count"] == 3
        assert fast_calls["count"] == 2
        assert sorted(seen) == [("fast", 1), ("slow", 1), ("slow", 2)]
        assert not hasattr(executor, "current_attempt")
