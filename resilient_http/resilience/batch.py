"""Windowed batch scheduler.

Processes items in consecutive windows of `concurrency` items:
- Items within a window run concurrently
- Window k+1 starts only after every item of window k has settled
- A failing item never affects its siblings
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any, TypeVar

from resilient_http.config.constants import DEFAULT_CONCURRENCY
from resilient_http.core.types import BatchItemError, BatchResult
from resilient_http.observability.logger import get_logger, log_context

logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")

ProgressCallback = Callable[[int, int], None]


def _validate_concurrency(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"concurrency must be a positive integer, got {value!r}")
    return value


async def _settle(operation: Callable[[T], Awaitable[R]], item: T) -> tuple[bool, Any]:
    """Run one item, turning an exception into a failed outcome."""
    try:
        return True, await operation(item)
    except Exception as e:
        return False, e


@dataclass
class BatchScheduler:
    """Bounded-concurrency batch runner.

    Usage:
        scheduler = BatchScheduler(concurrency=5)

        batch = await scheduler.run(urls, client.get)
        for error in batch.errors:
            print(error.index, error.error)
    """

    concurrency: int = DEFAULT_CONCURRENCY

    def __post_init__(self) -> None:
        _validate_concurrency(self.concurrency)

    async def run(
        self,
        items: Iterable[T],
        operation: Callable[[T], Awaitable[R]],
        concurrency: int | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> BatchResult[R]:
        """Run operation over every item, window by window.

        Args:
            items: Items to process
            operation: Async function that processes a single item
            concurrency: Window size (defaults to the scheduler's)
            progress_callback: Optional callback(completed, total) after each window

        Returns:
            BatchResult with index-aligned results and the collected errors
        """
        size = _validate_concurrency(self.concurrency if concurrency is None else concurrency)
        items = list(items)
        total = len(items)

        results: list[R | None] = [None] * total
        errors: list[BatchItemError] = []

        for window_index, start in enumerate(range(0, total, size)):
            window = items[start : start + size]

            with log_context(batch_index=window_index, batch_size=len(window)):
                logger.debug(f"Starting window {window_index} ({start}..{start + len(window) - 1})")

                outcomes = await asyncio.gather(*(_settle(operation, item) for item in window))

                for offset, (succeeded, value) in enumerate(outcomes):
                    index = start + offset
                    if succeeded:
                        results[index] = value
                    else:
                        logger.warning(
                            f"Item {index} failed: {value}",
                            extra={"index": index, "error_type": type(value).__name__},
                        )
                        errors.append(BatchItemError(index=index, error=value))

            if progress_callback is not None:
                progress_callback(start + len(window), total)

        if errors:
            logger.info(f"Batch finished: {total - len(errors)}/{total} succeeded")

        return BatchResult(results=results, errors=errors)
