"""Exception hierarchy for quota watching.

Exception classes support two patterns:
1. No-argument raise: raise DiscoveryError()
2. Contextual attributes: err = TransportError("boom", kind=TransportErrorKind.TIMEOUT, port=42000); raise err
"""

from enum import Enum
from typing import Any, Optional

from .config.errors import ConfigurationError


class TransportErrorKind(Enum):
    """Low-level failure categories raised by the connection client."""

    CONNECTION_REFUSED = "connection_refused"
    PROTOCOL_MISMATCH = "protocol_mismatch"
    TIMEOUT = "timeout"
    HTTP_STATUS = "http_status"
    GENERIC_IO = "generic_io"


class QuotaWatcherError(Exception):
    """Base exception for all quota watcher errors.

    Supports keyword arguments that are stored as attributes for debugging.
    """

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = self.__class__.__doc__ or "Quota watcher error occurred"
        super().__init__(message)
        for key, value in kwargs.items():
            setattr(self, key, value)


class DiscoveryError(QuotaWatcherError):
    """Language server process or endpoint not found."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Language server process not found"
        super().__init__(message, **kwargs)


class AuthPreconditionError(QuotaWatcherError):
    """CSRF token missing; request was not attempted."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "CSRF token missing"
        super().__init__(message, **kwargs)


class TransportError(QuotaWatcherError):
    """Network transport failure talking to the language server."""

    def __init__(
        self,
        message: str = "",
        *,
        kind: TransportErrorKind = TransportErrorKind.GENERIC_IO,
        status: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        if not message:
            message = "Transport failure"
        super().__init__(message, **kwargs)
        self.kind = kind
        self.status = status


class ResponseCodeError(QuotaWatcherError):
    """Language server answered with a non-success application code."""

    def __init__(self, message: str = "", *, code: Any = None, **kwargs: Any) -> None:
        if not message:
            message = f"Invalid response code: {code!r}"
        super().__init__(message, **kwargs)
        self.code = code


class ResponseParseError(QuotaWatcherError):
    """Response payload is missing required fields."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Malformed quota response"
        super().__init__(message, **kwargs)


__all__ = [
    "AuthPreconditionError",
    "ConfigurationError",
    "DiscoveryError",
    "QuotaWatcherError",
    "ResponseCodeError",
    "ResponseParseError",
    "TransportError",
    "TransportErrorKind",
]
