"""Core infrastructure for the request layer."""

from .errors import (
    ClientFaultError,
    ErrorKind,
    RequestError,
    RequestTimeoutError,
    RetryExhaustedError,
    TransientError,
    classify_exception,
    classify_status,
    error_for_status,
    is_client_fault_status,
    status_code_of,
)
from .types import BatchItemError, BatchResult, Response

__all__ = [
    # Errors
    "ErrorKind",
    "RequestError",
    "TransientError",
    "ClientFaultError",
    "RequestTimeoutError",
    "RetryExhaustedError",
    "classify_exception",
    "classify_status",
    "error_for_status",
    "is_client_fault_status",
    "status_code_of",
    # Types
    "Response",
    "BatchItemError",
    "BatchResult",
]
