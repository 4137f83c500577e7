"""In-process publish/subscribe with per-handler failure isolation."""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set

from .event_types import EventType

logger = logging.getLogger(__name__)

EventHandler = Callable[[Any], Any]
ErrorHandler = Callable[[BaseException, EventType], Any]


@dataclass(eq=False)
class Subscription:
    """Handle returned by ``EventBus.on``; ``dispose()`` unsubscribes."""

    event: EventType
    handler: EventHandler
    name: Optional[str] = None
    once: bool = False
    _bus: Optional["EventBus"] = field(default=None, repr=False)

    @property
    def label(self) -> str:
        if self.name:
            return self.name
        return getattr(self.handler, "__qualname__", repr(self.handler))

    def dispose(self) -> None:
        if self._bus is not None:
            self._bus.off(self)
            self._bus = None


class EventBus:
    """
    Synchronous and asynchronous event dispatch.

    A failing handler never prevents the remaining handlers from running;
    failures are logged and forwarded to registered error handlers, which are
    isolated the same way.
    """

    def __init__(self) -> None:
        self._subscriptions: Dict[EventType, List[Subscription]] = {}
        self._error_handlers: List[ErrorHandler] = []
        self._pending: Set[asyncio.Task[Any]] = set()
        self._disposed = False

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def on(self, event: EventType, handler: EventHandler, *, name: Optional[str] = None, once: bool = False) -> Subscription:
        if self._disposed:
            raise RuntimeError("EventBus has been disposed")
        subscription = Subscription(event=event, handler=handler, name=name, once=once, _bus=self)
        self._subscriptions.setdefault(event, []).append(subscription)
        logger.debug("[EventBus] Subscribed %s to %s", subscription.label, event.value)
        return subscription

    def once(self, event: EventType, handler: EventHandler, *, name: Optional[str] = None) -> Subscription:
        return self.on(event, handler, name=name, once=True)

    def off(self, subscription: Subscription) -> None:
        handlers = self._subscriptions.get(subscription.event)
        if not handlers:
            return
        if subscription in handlers:
            handlers.remove(subscription)
        if not handlers:
            del self._subscriptions[subscription.event]

    def on_error(self, handler: ErrorHandler) -> Callable[[], None]:
        """Register a handler for subscriber failures; returns an unregister callable."""
        self._error_handlers.append(handler)

        def _remove() -> None:
            if handler in self._error_handlers:
                self._error_handlers.remove(handler)

        return _remove

    def _take_handlers(self, event: EventType) -> List[Subscription]:
        handlers = list(self._subscriptions.get(event, ()))
        for subscription in handlers:
            if subscription.once:
                self.off(subscription)
        return handlers

    def emit(self, event: EventType, payload: Any = None) -> None:
        """Dispatch *payload* to every handler; coroutine handlers are scheduled, not awaited."""
        if self._disposed:
            logger.warning("[EventBus] Ignoring %s emitted after dispose", event.value)
            return

        for subscription in self._take_handlers(event):
            try:
                result = subscription.handler(payload)
                if inspect.isawaitable(result):
                    self._track(event, subscription, result)
            except Exception as exc:  # Subscriber failures stay isolated  # policy_guard: allow-silent-handler
                self._report_failure(exc, event, subscription)

    async def emit_async(self, event: EventType, payload: Any = None) -> None:
        """Dispatch *payload* and await every coroutine handler in subscription order."""
        if self._disposed:
            logger.warning("[EventBus] Ignoring %s emitted after dispose", event.value)
            return

        for subscription in self._take_handlers(event):
            try:
                result = subscription.handler(payload)
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception as exc:  # Subscriber failures stay isolated  # policy_guard: allow-silent-handler
                self._report_failure(exc, event, subscription)

    def _track(self, event: EventType, subscription: Subscription, awaitable: Any) -> None:
        async def _runner() -> None:
            try:
                await awaitable
            except asyncio.CancelledError:
                raise
            except Exception as exc:  # Subscriber failures stay isolated  # policy_guard: allow-silent-handler
                self._report_failure(exc, event, subscription)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise RuntimeError(f"Coroutine handler {subscription.label} requires a running event loop") from None

        task = loop.create_task(_runner())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _report_failure(self, exc: BaseException, event: EventType, subscription: Subscription) -> None:
        logger.error("[EventBus] Handler %s for %s failed: %s", subscription.label, event.value, exc)
        for error_handler in list(self._error_handlers):
            try:
                error_handler(exc, event)
            except Exception:  # Error handlers are isolated too  # policy_guard: allow-silent-handler
                logger.exception("[EventBus] Error handler failed while reporting %s", event.value)

    def subscription_count(self, event: Optional[EventType] = None) -> int:
        if event is not None:
            return len(self._subscriptions.get(event, ()))
        return sum(len(handlers) for handlers in self._subscriptions.values())

    @property
    def active_event_types(self) -> List[EventType]:
        return [event for event, handlers in self._subscriptions.items() if handlers]

    def clear_subscriptions(self, event: Optional[EventType] = None) -> None:
        if event is None:
            self._subscriptions.clear()
        else:
            self._subscriptions.pop(event, None)

    async def drain(self) -> None:
        """Wait for coroutine handlers scheduled by ``emit`` to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def dispose(self) -> None:
        self._subscriptions.clear()
        self._error_handlers.clear()
        self._disposed = True
        logger.debug("[EventBus] Disposed")
