"""Shared types for the request layer.

These types cross the boundary between the transport, the client and
the batch scheduler.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Generic, Mapping, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Response:
    """Raw HTTP response returned by a transport."""

    status: int
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)
    reason: str = ""

    @property
    def ok(self) -> bool:
        """Check if the status is 2xx."""
        return 200 <= self.status < 300

    def text(self, encoding: str = "utf-8") -> str:
        """Decode the body as text."""
        return self.body.decode(encoding, errors="replace")

    def json(self) -> Any:
        """Decode the body as JSON.

        Returns:
            Parsed JSON value, or None for an empty body

        Raises:
            ValueError: If the body is not valid JSON
        """
        if not self.body.strip():
            return None
        return json.loads(self.body)


@dataclass(frozen=True)
class BatchItemError:
    """Failure of a single batch item."""

    index: int  # Position in the full input sequence
    error: Exception


@dataclass(frozen=True)
class BatchResult(Generic[T]):
    """Result of a batch run.

    `results[i]` holds the result for `items[i]` when that item succeeded,
    and None when it failed. `errors` lists the failures in the order
    their windows settled.
    """

    results: list[T | None] = field(default_factory=list)
    errors: list[BatchItemError] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def failure_count(self) -> int:
        return len(self.errors)

    @property
    def success_count(self) -> int:
        return self.total - self.failure_count

    @property
    def failed_indices(self) -> set[int]:
        return {e.index for e in self.errors}

    @property
    def succeeded(self) -> list[tuple[int, T]]:
        """(index, result) pairs for the items that succeeded."""
        failed = self.failed_indices
        return [
            (i, result)  # type: ignore[misc]
            for i, result in enumerate(self.results)
            if i not in failed
        ]

    @property
    def ok(self) -> bool:
        """True when no item failed."""
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        """Summary for logging."""
        return {
            "total": self.total,
            "succeeded": self.success_count,
            "failed": self.failure_count,
            "errors": [
                {"index": e.index, "error_type": type(e.error).__name__, "message": str(e.error)}
                for e in self.errors
            ],
        }
