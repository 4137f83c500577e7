"""Helpers for error classification and recovery."""

from .error_classifier import classify_error
from .error_history import MAX_HISTORY_SIZE, RECENT_WINDOW_SECONDS, ErrorHistory, RecoveryStatistics
from .redetect_gate import AUTO_REDETECT_COOLDOWN_SECONDS, RedetectGate
from .solutions import solutions_for

__all__ = [
    "AUTO_REDETECT_COOLDOWN_SECONDS",
    "ErrorHistory",
    "MAX_HISTORY_SIZE",
    "RECENT_WINDOW_SECONDS",
    "RecoveryStatistics",
    "RedetectGate",
    "classify_error",
    "solutions_for",
]
