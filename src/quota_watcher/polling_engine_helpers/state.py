"""Mutable polling state owned by a single ``PollingEngine``."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

MAX_RETRY_COUNT = 3
RETRY_DELAY_SECONDS = 5.0


class PollingPhase(Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    RETRY_WAIT = "retry_wait"
    STOPPED = "stopped"


@dataclass
class PollingState:
    consecutive_error_count: int = 0
    retry_count: int = 0
    is_retrying: bool = False
    is_transitioning: bool = False
    is_first_attempt: bool = True
    phase: PollingPhase = PollingPhase.IDLE

    def reset_counters(self) -> None:
        """Clear failure bookkeeping after rediscovery or manual recovery."""
        self.consecutive_error_count = 0
        self.retry_count = 0
        self.is_retrying = False
        self.is_first_attempt = True
        if self.phase is PollingPhase.STOPPED:
            self.phase = PollingPhase.IDLE

    def record_success(self) -> None:
        self.consecutive_error_count = 0
        self.retry_count = 0
        self.is_retrying = False
        self.is_first_attempt = False
        self.phase = PollingPhase.IDLE
