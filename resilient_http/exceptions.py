"""
Client Exceptions
=================
Terminal failures surfaced to callers of the resilient client.
"""

from typing import Any, Optional


class ResilientHttpError(Exception):
    """Base exception for all failures of a logical request."""

    error_kind = "error"

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        method: Optional[str] = None,
        attempts: int = 0,
    ):
        self.message = message
        self.url = url
        self.method = method
        self.attempts = attempts
        super().__init__(message)


class HttpError(ResilientHttpError):
    """Raised when a response carried a non-2xx status."""

    error_kind = "http_error"

    def __init__(
        self,
        status_code: int,
        status_text: str,
        body: Any = None,
        retryable: bool = False,
        **kwargs,
    ):
        self.status_code = status_code
        self.status_text = status_text
        self.body = body
        self.retryable = retryable
        super().__init__(f"HTTP {status_code}: {status_text}", **kwargs)


class RequestTimeoutError(ResilientHttpError):
    """Raised when an attempt did not settle within its timeout."""

    error_kind = "timeout"

    def __init__(self, timeout: float, **kwargs):
        self.timeout = timeout
        super().__init__(f"Request timed out after {timeout:g}s", **kwargs)


class NetworkError(ResilientHttpError):
    """Raised on transport-level failures (connection refused, DNS, ...)."""

    error_kind = "network_error"

    def __init__(self, cause: BaseException, retryable: bool = True, **kwargs):
        self.cause = cause
        self.retryable = retryable
        super().__init__(f"Network error: {cause}", **kwargs)


class CircuitBreakerOpenError(ResilientHttpError):
    """Raised when the breaker rejected the call before any attempt."""

    error_kind = "circuit_open"

    def __init__(self, key: str, state: str, retry_after: float, **kwargs):
        self.key = key
        self.state = state
        self.retry_after = retry_after
        super().__init__(
            f"Circuit breaker for '{key}' is {state}. Retry after {retry_after:.1f}s",
            **kwargs,
        )


def error_kind_of(exc: BaseException) -> str:
    """Short label used in metrics for an exception."""
    if isinstance(exc, ResilientHttpError):
        return exc.error_kind
    return type(exc).__name__
