"""Metrics collection for the request layer.

Tracks request statistics like success rate, retries and rate-limit waits.

Usage:
    from resilient_http.observability import RequestMetrics

    metrics = RequestMetrics()
    metrics.record_attempt()
    metrics.record_success()

    print(metrics.success_rate)  # 100.0
    print(metrics.to_summary())
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from resilient_http.core.errors import ErrorKind, RequestError, RetryExhaustedError


@dataclass
class RequestMetrics:
    """Counters for one client's lifetime.

    Only touched from the event loop thread, so no locking.
    """

    started_at: datetime = field(default_factory=datetime.now)

    # Counts
    requests: int = 0  # Completed request() calls
    attempts: int = 0  # Transport invocations
    successful: int = 0
    failed: int = 0
    retries: int = 0

    # Failure breakdown
    client_faults: int = 0
    exhausted: int = 0
    timeouts: int = 0
    errors_by_type: dict[str, int] = field(default_factory=dict)

    # Rate limiting
    rate_limit_waits: int = 0
    rate_limit_wait_seconds: float = 0.0

    @property
    def success_rate(self) -> float:
        """Success rate as percentage (0-100)."""
        if self.requests == 0:
            return 0.0
        return self.successful / self.requests * 100

    @property
    def duration_seconds(self) -> float:
        return (datetime.now() - self.started_at).total_seconds()

    def record_attempt(self) -> None:
        self.attempts += 1

    def record_retry(self) -> None:
        self.retries += 1

    def record_timeout(self) -> None:
        self.timeouts += 1

    def record_success(self) -> None:
        """Record a request that returned a result."""
        self.requests += 1
        self.successful += 1

    def record_failure(self, error: BaseException) -> None:
        """Record a request that failed permanently."""
        self.requests += 1
        self.failed += 1

        root = error.cause if isinstance(error, RetryExhaustedError) else error
        error_type = type(root).__name__ if root is not None else type(error).__name__
        self.errors_by_type[error_type] = self.errors_by_type.get(error_type, 0) + 1

        if isinstance(error, RequestError):
            if error.kind is ErrorKind.CLIENT_FAULT:
                self.client_faults += 1
            elif error.kind is ErrorKind.EXHAUSTED:
                self.exhausted += 1

    def record_rate_limit_wait(self, seconds: float) -> None:
        """Record time spent waiting on the rate limiter."""
        self.rate_limit_waits += 1
        self.rate_limit_wait_seconds += seconds

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "started_at": self.started_at.isoformat(),
            "duration_seconds": round(self.duration_seconds, 2),
            "requests": self.requests,
            "attempts": self.attempts,
            "successful": self.successful,
            "failed": self.failed,
            "success_rate": round(self.success_rate, 2),
            "retries": self.retries,
            "client_faults": self.client_faults,
            "exhausted": self.exhausted,
            "timeouts": self.timeouts,
            "errors_by_type": dict(self.errors_by_type),
            "rate_limit_waits": self.rate_limit_waits,
            "rate_limit_wait_seconds": round(self.rate_limit_wait_seconds, 3),
        }

    def to_summary(self) -> str:
        """Generate human-readable summary."""
        lines = [
            "Request Summary",
            "=" * 40,
            f"Requests: {self.requests} ({self.attempts} attempts)",
            f"Success: {self.successful} ({self.success_rate:.1f}%)",
            f"Failed: {self.failed}",
            f"Retries: {self.retries}",
        ]

        if self.errors_by_type:
            lines.append("")
            lines.append("Errors by Type:")
            for error_type, count in sorted(self.errors_by_type.items(), key=lambda x: -x[1]):
                lines.append(f"  {error_type}: {count}")

        if self.rate_limit_waits > 0:
            lines.append(
                f"\nRate Limit Waits: {self.rate_limit_waits} "
                f"({self.rate_limit_wait_seconds:.2f}s total)"
            )

        return "\n".join(lines)

    def reset(self) -> None:
        """Reset all counters."""
        fresh = RequestMetrics()
        for name in self.__dataclass_fields__:
            setattr(self, name, getattr(fresh, name))
