"""State and timers for the polling engine."""

from .state import MAX_RETRY_COUNT, RETRY_DELAY_SECONDS, PollingPhase, PollingState
from .timers import IntervalTimer, OneShotTimer

__all__ = [
    "IntervalTimer",
    "MAX_RETRY_COUNT",
    "OneShotTimer",
    "PollingPhase",
    "PollingState",
    "RETRY_DELAY_SECONDS",
]
