"""Top-level controller wiring discovery, transport, polling and recovery."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from .connection_client import ConnectionClient
from .endpoint_discoverer import EndpointDiscoverer
from .events import EventBus
from .models import ApiMethod, ConnectionInfo, QuotaSnapshot
from .polling_engine import PollingEngine
from .polling_engine_helpers import OneShotTimer
from .process_inspector import ProcessInspector
from .recovery_policy import RecoveryPolicy, RecoveryPrompt
from .watcher_config import WatcherConfig, clamp_poll_interval, load_watcher_config

logger = logging.getLogger(__name__)


class QuotaEngine:
    """
    Owns one instance of every collaborator; nothing is shared at module level.

    Typical lifecycle::

        engine = QuotaEngine.create()
        await engine.start()
        ...
        await engine.dispose()
    """

    def __init__(
        self,
        config: WatcherConfig,
        *,
        bus: Optional[EventBus] = None,
        inspector: Optional[ProcessInspector] = None,
        client: Optional[ConnectionClient] = None,
        polling: Optional[PollingEngine] = None,
        prompt: Optional[RecoveryPrompt] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.bus = bus or EventBus()
        self.client = client or ConnectionClient(
            request_timeout=config.request_timeout_seconds,
            allow_http_fallback=config.allow_http_fallback,
        )
        self.inspector = inspector or ProcessInspector(process_name=config.process_name)
        self.discoverer = EndpointDiscoverer(self.inspector, self.client, bus=self.bus)
        self.polling = polling or PollingEngine(self.client, self.bus, api_method=config.api_method)
        self.recovery = RecoveryPolicy(
            self.bus,
            redetect=self._redetect_and_resume,
            toggle_api_method=self.toggle_api_method,
            get_consecutive_errors=self.polling.get_consecutive_errors,
            prompt=prompt,
            clock=clock,
        )
        self._poll_start_timer = OneShotTimer("poll-start")
        self._disposed = False

    @classmethod
    def create(cls, config: Optional[WatcherConfig] = None, **kwargs) -> "QuotaEngine":
        return cls(config or load_watcher_config(), **kwargs)

    @property
    def connection_info(self) -> Optional[ConnectionInfo]:
        return self.polling.connection_info

    @property
    def last_snapshot(self) -> Optional[QuotaSnapshot]:
        return self.polling.last_snapshot

    @property
    def api_method(self) -> ApiMethod:
        return self.polling.api_method

    async def start(self) -> Optional[ConnectionInfo]:
        """Detect the endpoint and, when enabled, schedule polling."""
        if self._disposed:
            raise RuntimeError("QuotaEngine has been disposed")
        self.recovery.attach()
        info = await self.detect_port()
        if info is not None and self.config.enabled:
            self._schedule_polling_start()
        return info

    async def stop(self) -> None:
        self._poll_start_timer.cancel()
        self.polling.stop_polling(force=True)

    async def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        await self.stop()
        self.recovery.detach()
        await self.client.close()
        self.bus.dispose()
        logger.info("Quota engine disposed")

    async def __aenter__(self) -> "QuotaEngine":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.dispose()

    async def detect_port(self) -> Optional[ConnectionInfo]:
        info = await self.discoverer.detect_port()
        if info is not None:
            self.set_connection_info(info)
            self.polling.set_allow_http_fallback(self.config.allow_http_fallback)
        return info

    async def _redetect_and_resume(self) -> Optional[ConnectionInfo]:
        info = await self.detect_port()
        if info is not None and self.config.enabled:
            self._schedule_polling_start()
        return info

    def _schedule_polling_start(self) -> None:
        delay = self.config.poll_start_delay_seconds
        logger.debug("Polling starts in %.1fs", delay)
        self._poll_start_timer.schedule(delay, self.start_polling)

    async def start_polling(self, interval: Optional[float] = None) -> None:
        await self.polling.start_polling(self._interval(interval))

    def stop_polling(self) -> None:
        self._poll_start_timer.cancel()
        self.polling.stop_polling()

    async def fetch_quota_data(self) -> Optional[QuotaSnapshot]:
        return await self.polling.fetch_quota_data()

    async def quick_refresh(self) -> None:
        await self.polling.quick_refresh()

    async def retry_from_error(self, interval: Optional[float] = None) -> None:
        self.recovery.reset()
        await self.polling.retry_from_error(self._interval(interval))

    def set_connection_info(self, info: ConnectionInfo) -> None:
        self.polling.set_connection_info(info)

    def set_api_method(self, method: ApiMethod) -> None:
        self.polling.set_api_method(method)

    def set_allow_http_fallback(self, allowed: bool) -> None:
        self.polling.set_allow_http_fallback(allowed)

    def toggle_api_method(self) -> ApiMethod:
        method = self.polling.api_method.toggled()
        self.polling.set_api_method(method)
        return method

    def get_consecutive_errors(self) -> int:
        return self.polling.get_consecutive_errors()

    def is_polling(self) -> bool:
        return self.polling.is_polling()

    async def apply_config(self, config: WatcherConfig) -> None:
        """Adopt new settings; polling starts or stops to match ``enabled``."""
        self.config = config
        self.polling.set_allow_http_fallback(config.allow_http_fallback)
        self.polling.set_api_method(config.api_method)
        if not config.enabled:
            self.stop_polling()
        elif self.connection_info is not None:
            await self.start_polling(config.poll_interval_seconds)

    def _interval(self, interval: Optional[float]) -> float:
        if interval is None:
            return self.config.poll_interval_seconds
        return clamp_poll_interval(interval)


__all__ = ["QuotaEngine"]
