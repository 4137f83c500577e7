"""Bounded rolling buffer of classified errors."""

from __future__ import annotations

from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List

from ..models import ErrorRecord, ErrorType

MAX_HISTORY_SIZE = 20
RECENT_WINDOW_SECONDS = 300.0


@dataclass(frozen=True)
class RecoveryStatistics:
    total_errors: int
    recent_errors: int
    error_types: Dict[ErrorType, int] = field(default_factory=dict)


class ErrorHistory:
    def __init__(self, max_size: int = MAX_HISTORY_SIZE, window_seconds: float = RECENT_WINDOW_SECONDS) -> None:
        self.window_seconds = window_seconds
        self._records: Deque[ErrorRecord] = deque(maxlen=max_size)

    def __len__(self) -> int:
        return len(self._records)

    def add(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def records(self) -> List[ErrorRecord]:
        return list(self._records)

    def recent(self, now: float) -> List[ErrorRecord]:
        return [record for record in self._records if now - record.timestamp < self.window_seconds]

    def clear(self) -> None:
        self._records.clear()

    def statistics(self, now: float) -> RecoveryStatistics:
        counts = Counter(record.error_type for record in self._records)
        return RecoveryStatistics(
            total_errors=len(self._records),
            recent_errors=len(self.recent(now)),
            error_types=dict(counts),
        )
