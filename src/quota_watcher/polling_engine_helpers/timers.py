"""Single-task timers for interval polling and delayed retries."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], Awaitable[Any]]


def _current_task() -> Optional[asyncio.Task[Any]]:
    try:
        return asyncio.current_task()
    except RuntimeError:  # No running loop  # policy_guard: allow-silent-handler
        return None


class _TaskTimer:
    """
    Owns at most one background task.

    ``cancel`` interrupts the task only while it sleeps; a callback already
    running is allowed to finish and the task then exits on its own.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._task: Optional[asyncio.Task[Any]] = None
        self._busy: Optional[asyncio.Task[Any]] = None

    @property
    def is_active(self) -> bool:
        return self._task is not None and not self._task.done()

    def cancel(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        if task is self._busy or task is _current_task():
            return
        task.cancel()

    def _spawn(self, coro) -> None:
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(coro)

    async def _invoke(self, me: asyncio.Task[Any], callback: TimerCallback) -> None:
        self._busy = me
        try:
            await callback()
        except asyncio.CancelledError:
            raise
        except Exception:  # Timer keeps running after a callback failure  # policy_guard: allow-silent-handler
            logger.exception("[%s] Timer callback failed", self.name)
        finally:
            if self._busy is me:
                self._busy = None


class IntervalTimer(_TaskTimer):
    def start(self, interval: float, callback: TimerCallback) -> None:
        self._spawn(self._run(interval, callback))

    async def _run(self, interval: float, callback: TimerCallback) -> None:
        me = asyncio.current_task()
        while self._task is me:
            await asyncio.sleep(interval)
            if self._task is not me:
                return
            await self._invoke(me, callback)


class OneShotTimer(_TaskTimer):
    def schedule(self, delay: float, callback: TimerCallback) -> None:
        self._spawn(self._run(delay, callback))

    async def _run(self, delay: float, callback: TimerCallback) -> None:
        me = asyncio.current_task()
        await asyncio.sleep(delay)
        if self._task is not me:
            return
        self._task = None
        await self._invoke(me, callback)
