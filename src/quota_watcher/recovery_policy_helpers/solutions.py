"""Suggested remedies per error category, as stable message keys."""

from typing import Dict, Tuple

from ..models import ErrorType

_SOLUTIONS: Dict[ErrorType, Tuple[str, ...]] = {
    ErrorType.CONNECTION_REFUSED: (
        "recovery.ensure_running",
        "recovery.restart_app",
        "recovery.redetect_port",
    ),
    ErrorType.PROTOCOL_ERROR: (
        "recovery.enable_http_fallback",
        "recovery.check_firewall",
        "recovery.restart_app",
    ),
    ErrorType.PORT_DETECTION: (
        "recovery.redetect_port",
        "recovery.switch_process_query",
        "recovery.restart_app",
    ),
    ErrorType.AUTH_ERROR: (
        "recovery.redetect_port_refresh_token",
        "recovery.restart_app",
        "recovery.check_permissions",
    ),
    ErrorType.TIMEOUT: (
        "recovery.check_network",
        "recovery.increase_poll_interval",
        "recovery.restart_app",
    ),
}

_DEFAULT_SOLUTIONS = (
    "recovery.redetect_port",
    "recovery.restart_app",
    "recovery.view_logs",
)


def solutions_for(error_type: ErrorType) -> Tuple[str, ...]:
    return _SOLUTIONS.get(error_type, _DEFAULT_SOLUTIONS)
