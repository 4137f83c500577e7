"""Helpers for the loopback connection client."""

from .error_mapper import is_connection_refused, is_protocol_mismatch, map_transport_error
from .fallback_gate import MAX_HTTP_FALLBACK_COUNT, FallbackGate
from .response_validator import SUCCESS_CODES, is_success_code, validate_response_code
from .session_manager import SessionManager

__all__ = [
    "FallbackGate",
    "MAX_HTTP_FALLBACK_COUNT",
    "SUCCESS_CODES",
    "SessionManager",
    "is_connection_refused",
    "is_protocol_mismatch",
    "is_success_code",
    "map_transport_error",
    "validate_response_code",
]
