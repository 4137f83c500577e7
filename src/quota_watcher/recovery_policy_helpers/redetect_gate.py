"""Single gate shared by every path that triggers endpoint rediscovery."""

from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

AUTO_REDETECT_COOLDOWN_SECONDS = 180.0

T = TypeVar("T")


class RedetectGate:
    """
    Allows one rediscovery at a time and rate-limits automatic ones.

    Manual or user-approved rediscovery may bypass the cooldown, but never
    runs while another rediscovery is in flight.
    """

    def __init__(
        self,
        cooldown_seconds: float = AUTO_REDETECT_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._last_attempt: Optional[float] = None
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def last_attempt(self) -> Optional[float]:
        return self._last_attempt

    def cooldown_elapsed(self) -> bool:
        if self._last_attempt is None:
            return True
        return self._clock() - self._last_attempt >= self.cooldown_seconds

    async def run(self, action: Callable[[], Awaitable[T]], *, ignore_cooldown: bool = False) -> Optional[T]:
        """Run *action* if the gate is open; returns ``None`` when skipped."""
        if self._in_flight:
            logger.info("Rediscovery already in flight; skipping")
            return None
        if not ignore_cooldown and not self.cooldown_elapsed():
            remaining = self.cooldown_seconds - (self._clock() - (self._last_attempt or 0.0))
            logger.info("Automatic rediscovery on cooldown (%.0fs remaining)", remaining)
            return None

        self._in_flight = True
        self._last_attempt = self._clock()
        try:
            return await action()
        finally:
            self._in_flight = False
