"""Failure classification, escalation and automatic rediscovery."""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from .events import EventBus, EventType, Subscription
from .models import ConnectionInfo, ErrorRecord, ErrorType, RetryInfo
from .recovery_policy_helpers import (
    AUTO_REDETECT_COOLDOWN_SECONDS,
    MAX_HISTORY_SIZE,
    RECENT_WINDOW_SECONDS,
    ErrorHistory,
    RecoveryStatistics,
    RedetectGate,
    classify_error,
    solutions_for,
)

logger = logging.getLogger(__name__)

ESCALATION_THRESHOLD = 3
AUTO_FIX_COOLDOWN_SECONDS = 600.0
AUTO_REDETECT_ERROR_THRESHOLD = 3
PROTOCOL_TOGGLE_SETTLE_SECONDS = 1.0


class RecoveryChoice(Enum):
    AUTO_FIX = "auto_fix"
    DISMISS = "dismiss"


Redetect = Callable[[], Awaitable[Optional[ConnectionInfo]]]
RecoveryPrompt = Callable[[ErrorType, BaseException, Sequence[str]], Awaitable[RecoveryChoice]]


class RecoveryPolicy:
    """
    Observes fetch failures and decides when to rediscover the endpoint.

    Two independent circuits share one ``RedetectGate``:

    * terminal fetch errors with at least three consecutive failures trigger
      an automatic rediscovery, rate-limited by the gate cooldown;
    * three or more errors inside the recent window offer an interactive
      recovery through ``prompt``, suppressed for ten minutes after an
      auto-fix attempt.
    """

    def __init__(
        self,
        bus: EventBus,
        *,
        redetect: Redetect,
        toggle_api_method: Callable[[], Any],
        get_consecutive_errors: Callable[[], int],
        prompt: Optional[RecoveryPrompt] = None,
        gate: Optional[RedetectGate] = None,
        clock: Callable[[], float] = time.monotonic,
        history_size: int = MAX_HISTORY_SIZE,
        window_seconds: float = RECENT_WINDOW_SECONDS,
        escalation_threshold: int = ESCALATION_THRESHOLD,
        auto_fix_cooldown_seconds: float = AUTO_FIX_COOLDOWN_SECONDS,
        protocol_settle_seconds: float = PROTOCOL_TOGGLE_SETTLE_SECONDS,
    ) -> None:
        self._bus = bus
        self._redetect = redetect
        self._toggle_api_method = toggle_api_method
        self._get_consecutive_errors = get_consecutive_errors
        self._prompt = prompt
        self._clock = clock
        self.gate = gate or RedetectGate(AUTO_REDETECT_COOLDOWN_SECONDS, clock)
        self.history = ErrorHistory(history_size, window_seconds)
        self.escalation_threshold = escalation_threshold
        self.auto_fix_cooldown_seconds = auto_fix_cooldown_seconds
        self.protocol_settle_seconds = protocol_settle_seconds
        self._auto_fix_attempted_at: Optional[float] = None
        self._subscriptions: List[Subscription] = []

    def attach(self) -> None:
        if self._subscriptions:
            return
        self._subscriptions = [
            self._bus.on(EventType.RETRY, self._on_retry, name="recovery.retry"),
            self._bus.on(EventType.FETCH_ERROR, self._on_fetch_error, name="recovery.fetch_error"),
            self._bus.on(EventType.FETCH_SUCCESS, self._on_fetch_success, name="recovery.fetch_success"),
        ]

    def detach(self) -> None:
        for subscription in self._subscriptions:
            subscription.dispose()
        self._subscriptions = []

    def set_prompt(self, prompt: Optional[RecoveryPrompt]) -> None:
        self._prompt = prompt

    @property
    def auto_fix_attempted(self) -> bool:
        if self._auto_fix_attempted_at is None:
            return False
        if self._clock() - self._auto_fix_attempted_at >= self.auto_fix_cooldown_seconds:
            self._auto_fix_attempted_at = None
            return False
        return True

    def record_error(self, error: BaseException) -> ErrorType:
        message = str(error)
        error_type = classify_error(message)
        self.history.add(ErrorRecord(error_type=error_type, message=message, timestamp=self._clock()))
        logger.debug("Recorded %s error: %s", error_type.value, message)
        return error_type

    def should_escalate(self) -> bool:
        recent = self.history.recent(self._clock())
        return len(recent) >= self.escalation_threshold and not self.auto_fix_attempted

    async def handle_error(self, error: BaseException) -> ErrorType:
        """Record *error* and offer interactive recovery when errors pile up."""
        error_type = self.record_error(error)
        if self.should_escalate():
            await self._offer_recovery(error_type, error)
        return error_type

    async def _offer_recovery(self, error_type: ErrorType, error: BaseException) -> None:
        solutions = solutions_for(error_type)
        if self._prompt is None:
            logger.warning(
                "Repeated %s errors (%d recent); suggested: %s",
                error_type.value,
                len(self.history.recent(self._clock())),
                ", ".join(solutions),
            )
            return

        choice = await self._prompt(error_type, error, solutions)
        if choice is RecoveryChoice.AUTO_FIX:
            await self.attempt_auto_fix(error_type)

    async def attempt_auto_fix(self, error_type: ErrorType) -> bool:
        """Run the remedy for *error_type*; returns True when rediscovery succeeded."""
        self._auto_fix_attempted_at = self._clock()
        self._bus.emit(EventType.RECOVERY_START, error_type)
        logger.info("Attempting auto-fix for %s", error_type.value)

        if error_type is ErrorType.PROTOCOL_ERROR:
            self._toggle_api_method()
            await asyncio.sleep(self.protocol_settle_seconds)

        info = await self.gate.run(self._redetect, ignore_cooldown=True)
        return self._report_outcome(info, error_type)

    async def auto_redetect(self) -> bool:
        """Cooldown-gated rediscovery used by the non-interactive circuit."""
        info = await self.gate.run(self._redetect)
        return info is not None

    def _report_outcome(self, info: Optional[ConnectionInfo], error_type: ErrorType) -> bool:
        if info is None:
            logger.warning("Auto-fix for %s did not find the language server", error_type.value)
            self._bus.emit(EventType.RECOVERY_FAILURE, error_type)
            return False
        logger.info("Auto-fix for %s succeeded on port %s", error_type.value, info.connect_port)
        self._bus.emit(EventType.RECOVERY_SUCCESS, info)
        return True

    async def _on_retry(self, info: RetryInfo) -> None:
        if info.error is not None:
            await self.handle_error(info.error)

    async def _on_fetch_error(self, error: BaseException) -> None:
        consecutive = self._get_consecutive_errors()
        if consecutive >= AUTO_REDETECT_ERROR_THRESHOLD and self.gate.cooldown_elapsed():
            logger.warning("%d consecutive fetch errors; rediscovering endpoint", consecutive)
            self.record_error(error)
            if await self.auto_redetect():
                return
            if self.should_escalate():
                await self._offer_recovery(classify_error(str(error)), error)
            return
        await self.handle_error(error)

    def _on_fetch_success(self, _snapshot: Any) -> None:
        if len(self.history):
            logger.debug("Fetch succeeded; clearing error history")
        self.reset()

    def reset(self) -> None:
        self.history.clear()
        self._auto_fix_attempted_at = None

    def get_statistics(self) -> RecoveryStatistics:
        return self.history.statistics(self._clock())


__all__ = [
    "AUTO_FIX_COOLDOWN_SECONDS",
    "ESCALATION_THRESHOLD",
    "RecoveryChoice",
    "RecoveryPolicy",
    "RecoveryPrompt",
    "solutions_for",
]
