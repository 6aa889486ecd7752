"""Context-aware logging for the request layer.

Every record emitted inside `log_context(...)` carries the active
request/batch fields, either as JSON keys or as a bracketed prefix.

    from resilient_http.observability import get_logger, log_context

    logger = get_logger(__name__)

    with log_context(endpoint="/users", method="GET"):
        logger.info("Sending", extra={"attempt": 1})
        # {"timestamp": "...", "level": "info", "endpoint": "/users", "method": "GET", "attempt": 1, ...}
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass, fields, replace
from datetime import datetime, timezone
from typing import Any

ROOT_LOGGER_NAME = "resilient_http"

# Attributes every LogRecord has; anything else came from `extra=`
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "taskName",
}

_LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}
_RESET = "\033[0m"


@dataclass(frozen=True)
class LogContext:
    """Fields attached to every record logged while the context is active."""

    endpoint: str | None = None
    method: str | None = None
    batch_index: int | None = None  # Window number within a batch run
    batch_size: int | None = None
    correlation_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    def prefix(self) -> str:
        """Bracketed prefix for human-readable output."""
        parts = []
        if self.endpoint:
            parts.append(f"[{self.method} {self.endpoint}]" if self.method else f"[{self.endpoint}]")
        if self.batch_index is not None:
            parts.append(f"[window {self.batch_index}]")
        if self.correlation_id:
            parts.append(f"[{self.correlation_id}]")
        return " ".join(parts)


_FIELD_NAMES = frozenset(f.name for f in fields(LogContext))

_current: contextvars.ContextVar[LogContext] = contextvars.ContextVar(
    "resilient_http_log_context", default=LogContext()
)


@contextmanager
def log_context(**values: Any) -> Iterator[LogContext]:
    """Layer fields onto the current log context for the duration of a block.

    Nested contexts inherit the outer fields. Each asyncio task sees its
    own copy, so concurrent batch items do not leak into each other.

    Raises:
        TypeError: If a field is not one of LogContext's attributes
    """
    unknown = set(values) - _FIELD_NAMES
    if unknown:
        raise TypeError(f"Unknown log context fields: {sorted(unknown)}")

    token = _current.set(replace(_current.get(), **values))
    try:
        yield _current.get()
    finally:
        _current.reset(token)


def current_context() -> LogContext:
    """Log context active in the running task."""
    return _current.get()


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in vars(record).items() if k not in _STANDARD_ATTRS}


class StructuredFormatter(logging.Formatter):
    """One JSON object per line: base fields, then context, then extras."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
            **_current.get().to_dict(),
            **_extras(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


class PrettyFormatter(logging.Formatter):
    """Colored single-line output for terminals."""

    def format(self, record: logging.LogRecord) -> str:
        color = _LEVEL_COLORS.get(record.levelno, "")
        prefix = _current.get().prefix()
        extras = ", ".join(f"{k}={v}" for k, v in _extras(record).items())

        line = f"{datetime.now():%H:%M:%S} {color}{record.levelname[:4]}{_RESET} "
        if prefix:
            line += prefix + " "
        line += record.getMessage()
        if extras:
            line += " | " + extras
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


_configured = False


def setup_logging(
    level: int = logging.INFO,
    json_format: bool = False,
    quiet: bool = False,
    handler: logging.Handler | None = None,
    force: bool = False,
) -> None:
    """Install a single handler on the `resilient_http` logger.

    Args:
        level: Logger level
        json_format: Emit JSON lines instead of colored text
        quiet: Only let errors through the handler
        handler: Use this handler (e.g. rich's RichHandler) instead of stderr
        force: Replace a previously installed handler
    """
    global _configured

    if _configured and not force:
        return

    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(StructuredFormatter() if json_format else PrettyFormatter())
    handler.setLevel(logging.ERROR if quiet else level)

    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.setLevel(level)
    package_logger.handlers.clear()
    package_logger.addHandler(handler)

    for noisy in ("aiohttp", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Logger under the `resilient_http` namespace, set up on first use."""
    setup_logging()

    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
