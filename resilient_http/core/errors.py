"""Error hierarchy for the request layer.

All request errors inherit from RequestError and carry an explicit `kind`.
Use `is_retryable` to decide whether an error can be retried.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Classification of request failures."""

    TRANSIENT = "transient"  # Network blip, 5xx - retry
    CLIENT_FAULT = "client_fault"  # 4xx - retrying cannot help
    TIMEOUT = "timeout"  # Latency, not request validity - retry
    EXHAUSTED = "exhausted"  # Retry budget consumed


class RequestError(Exception):
    """Base error for all request failures.

    Attributes:
        status_code: HTTP status code (if a response was received)
        url: Requested URL (if applicable)
        method: HTTP method (if applicable)
        cause: Underlying exception (if any)
    """

    kind: ErrorKind = ErrorKind.TRANSIENT

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str | None = None,
        method: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.status_code = status_code
        self.url = url
        self.method = method
        self.cause = cause
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        """Whether this error can be retried."""
        return False

    def to_dict(self) -> dict[str, Any]:
        """Serialize for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "kind": self.kind.value,
            "error_message": str(self),
            "status_code": self.status_code,
            "url": self.url,
            "method": self.method,
            "is_retryable": self.is_retryable,
        }


class TransientError(RequestError):
    """Network failure or server-side (non-4xx) error status.

    This is retryable - the same request may succeed later.
    """

    kind = ErrorKind.TRANSIENT

    @property
    def is_retryable(self) -> bool:
        return True


class ClientFaultError(RequestError):
    """Request rejected with a 4xx status.

    This is NOT retryable - resending an invalid request cannot change the outcome.
    """

    kind = ErrorKind.CLIENT_FAULT

    @property
    def is_retryable(self) -> bool:
        return False


class RequestTimeoutError(RequestError):
    """Request timed out.

    This is retryable - the server might be temporarily slow.
    """

    kind = ErrorKind.TIMEOUT

    def __init__(
        self,
        message: str = "Request timed out",
        *,
        timeout_seconds: float | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.timeout_seconds = timeout_seconds

    @property
    def is_retryable(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["timeout_seconds"] = self.timeout_seconds
        return d


class RetryExhaustedError(RequestError):
    """All attempts failed.

    Wraps the last failure; the message names the attempt count.
    """

    kind = ErrorKind.EXHAUSTED

    def __init__(self, attempts: int, cause: BaseException) -> None:
        super().__init__(
            f"Failed after {attempts} attempts: {cause}",
            status_code=status_code_of(cause),
            url=getattr(cause, "url", None),
            method=getattr(cause, "method", None),
            cause=cause,
        )
        self.attempts = attempts

    @property
    def is_retryable(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["attempts"] = self.attempts
        d["cause_type"] = type(self.cause).__name__
        return d


def status_code_of(error: BaseException) -> int | None:
    """Extract an HTTP status code from an exception, if it carries one.

    RequestError exposes `status_code`; foreign exceptions such as
    aiohttp.ClientResponseError expose `status`.
    """
    if isinstance(error, RequestError):
        return error.status_code

    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def is_client_fault_status(status: int | None) -> bool:
    """Check if a status code is a client fault (4xx)."""
    return status is not None and 400 <= status < 500


def classify_status(status: int) -> ErrorKind:
    """Classify a non-success HTTP status code."""
    if is_client_fault_status(status):
        return ErrorKind.CLIENT_FAULT
    return ErrorKind.TRANSIENT


def error_for_status(
    status: int,
    message: str,
    **kwargs: Any,
) -> RequestError:
    """Build the error for a non-success response status."""
    if classify_status(status) is ErrorKind.CLIENT_FAULT:
        return ClientFaultError(message, status_code=status, **kwargs)
    return TransientError(message, status_code=status, **kwargs)


def classify_exception(
    error: Exception,
    *,
    url: str | None = None,
    method: str | None = None,
    timeout_seconds: float | None = None,
) -> RequestError:
    """Classify a transport-level exception into a RequestError.

    Args:
        error: The exception raised by the transport
        url: Requested URL for context
        method: HTTP method for context
        timeout_seconds: Timeout that governed the call

    Returns:
        Appropriate RequestError subclass
    """
    if isinstance(error, RequestError):
        return error

    if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        message = (
            f"Request timeout after {timeout_seconds}s"
            if timeout_seconds is not None
            else "Request timed out"
        )
        return RequestTimeoutError(
            message,
            timeout_seconds=timeout_seconds,
            url=url,
            method=method,
            cause=error,
        )

    status = status_code_of(error)
    if status is not None:
        return error_for_status(status, str(error), url=url, method=method, cause=error)

    return TransientError(str(error) or type(error).__name__, url=url, method=method, cause=error)
