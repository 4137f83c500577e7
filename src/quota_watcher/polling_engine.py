"""Periodic quota fetching with bounded retries."""

from __future__ import annotations

import logging
from typing import Optional

from .connection_client import ConnectionClient
from .events import EventBus, EventType
from .exceptions import (
    AuthPreconditionError,
    QuotaWatcherError,
    ResponseCodeError,
    ResponseParseError,
    TransportError,
)
from .models import ApiMethod, ConnectionInfo, QuotaSnapshot, RetryInfo
from .polling_engine_helpers import (
    MAX_RETRY_COUNT,
    RETRY_DELAY_SECONDS,
    IntervalTimer,
    OneShotTimer,
    PollingPhase,
    PollingState,
)
from .quota_parser import API_PATHS, REQUEST_BODY, parse_response

logger = logging.getLogger(__name__)

_FETCH_FAILURES = (TransportError, AuthPreconditionError, ResponseParseError)


class PollingEngine:
    """
    Drives quota fetches on a fixed interval.

    A failed fetch schedules a single retry after ``retry_delay`` seconds and
    suppresses interval fetches until it runs. When ``max_retries``
    consecutive fetches in one cycle have failed, polling stops and a
    terminal ``FETCH_ERROR`` is emitted; only ``start_polling`` or
    ``retry_from_error`` resume it.
    """

    def __init__(
        self,
        client: ConnectionClient,
        bus: EventBus,
        *,
        api_method: ApiMethod = ApiMethod.GET_USER_STATUS,
        max_retries: int = MAX_RETRY_COUNT,
        retry_delay: float = RETRY_DELAY_SECONDS,
    ) -> None:
        self._client = client
        self._bus = bus
        self.api_method = api_method
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.state = PollingState()
        self.last_snapshot: Optional[QuotaSnapshot] = None
        self._interval: Optional[float] = None
        self._stop_generation = 0
        self._interval_timer = IntervalTimer("polling")
        self._retry_timer = OneShotTimer("retry")

    @property
    def connection_info(self) -> Optional[ConnectionInfo]:
        return self._client.connection_info

    @property
    def interval(self) -> Optional[float]:
        return self._interval

    def set_connection_info(self, info: ConnectionInfo) -> None:
        self._client.set_connection_info(info)
        self.state.reset_counters()
        logger.info("Connection info updated: port=%s http_fallback_port=%s", info.connect_port, info.http_fallback_port)

    def set_api_method(self, method: ApiMethod) -> None:
        if method is not self.api_method:
            logger.info("API method changed: %s -> %s", self.api_method.value, method.value)
        self.api_method = method

    def set_allow_http_fallback(self, allowed: bool) -> None:
        self._client.set_allow_http_fallback(allowed)

    def get_consecutive_errors(self) -> int:
        return self.state.consecutive_error_count

    def is_polling(self) -> bool:
        return self._interval_timer.is_active

    def is_retry_pending(self) -> bool:
        return self._retry_timer.is_active

    async def start_polling(self, interval: float) -> None:
        """Fetch once now, then every *interval* seconds."""
        if self.state.is_transitioning:
            logger.debug("start_polling ignored; transition in progress")
            return

        self.state.is_transitioning = True
        try:
            self._cancel_schedule()
            self._interval = interval
            self.state.retry_count = 0
            self.state.is_retrying = False
            if self.state.phase is PollingPhase.STOPPED:
                self.state.phase = PollingPhase.IDLE
            logger.info("Starting quota polling every %.1fs", interval)
            generation = self._stop_generation
            await self._do_fetch()
            if self._stop_generation != generation:
                logger.info("Polling stopped during initial fetch; interval not armed")
            elif self.state.phase is not PollingPhase.STOPPED:
                self._interval_timer.start(interval, self.fetch_quota)
        finally:
            self.state.is_transitioning = False

    def stop_polling(self, *, force: bool = False) -> None:
        if self.state.is_transitioning and not force:
            logger.debug("stop_polling ignored; transition in progress")
            return
        # In-flight fetches compare against this and drop their results
        self._stop_generation += 1
        self._cancel_schedule()
        logger.info("Quota polling stopped")

    def _cancel_schedule(self) -> None:
        self._interval_timer.cancel()
        self._retry_timer.cancel()
        self.state.is_retrying = False

    async def fetch_quota(self) -> None:
        """Scheduled fetch; skipped while a retry is pending."""
        if self.state.is_retrying:
            logger.debug("Retry pending; skipping scheduled fetch")
            return
        await self._do_fetch()

    async def quick_refresh(self) -> None:
        await self._do_fetch()

    async def retry_from_error(self, interval: float) -> None:
        """Reset all failure counters, fetch once and resume polling if that fetch succeeded."""
        logger.info("Manual retry requested (interval %.1fs)", interval)
        self.state.reset_counters()
        self._client.reset_fallback_count()
        self._cancel_schedule()
        self._interval = interval
        generation = self._stop_generation

        await self._do_fetch()

        if self._stop_generation != generation:
            logger.info("Polling stopped during manual retry; interval not armed")
        elif self.state.consecutive_error_count == 0:
            logger.info("Manual retry succeeded; resuming polling")
            self._interval_timer.start(interval, self.fetch_quota)
        else:
            logger.warning("Manual retry failed; polling remains stopped")

    async def fetch_quota_data(self) -> Optional[QuotaSnapshot]:
        """One-shot fetch that bypasses the scheduler and failure counters."""
        try:
            return await self._request_snapshot()
        except QuotaWatcherError as exc:
            logger.warning("One-shot quota fetch failed: %s", exc)
            return None

    async def _request_snapshot(self) -> QuotaSnapshot:
        method = self.api_method
        payload = await self._client.send(API_PATHS[method], REQUEST_BODY)
        return parse_response(method, payload)

    async def _do_fetch(self) -> None:
        if self.state.is_first_attempt:
            self._bus.emit(EventType.FETCH_START)

        generation = self._stop_generation
        previous_phase = self.state.phase
        self.state.phase = PollingPhase.FETCHING
        try:
            snapshot = await self._request_snapshot()
        except ResponseCodeError as exc:
            logger.warning("Ignoring response with invalid code %r: %s", exc.code, exc)
            self.state.phase = PollingPhase.STOPPED if previous_phase is PollingPhase.STOPPED else PollingPhase.IDLE
            return
        except _FETCH_FAILURES as exc:
            if self._stop_generation != generation:
                self._discard_stale_result()
                return
            self._handle_failure(exc)
            return

        if self._stop_generation != generation:
            self._discard_stale_result()
            return
        self.state.record_success()
        self.last_snapshot = snapshot
        logger.debug("Quota fetched: %d models", len(snapshot.models))
        self._bus.emit(EventType.FETCH_SUCCESS, snapshot)

    def _discard_stale_result(self) -> None:
        logger.debug("Polling was stopped while fetching; result discarded")
        if self.state.phase is PollingPhase.FETCHING:
            self.state.phase = PollingPhase.IDLE

    def _handle_failure(self, error: QuotaWatcherError) -> None:
        self.state.consecutive_error_count += 1
        # Saturates at max_retries; failures after exhaustion do not grow it
        self.state.retry_count = min(self.state.retry_count + 1, self.max_retries)
        logger.error(
            "Quota fetch failed (%d consecutive, attempt %d/%d): %s",
            self.state.consecutive_error_count,
            self.state.retry_count,
            self.max_retries,
            error,
        )

        if self.state.retry_count < self.max_retries:
            self.state.is_retrying = True
            self.state.phase = PollingPhase.RETRY_WAIT
            self._bus.emit(
                EventType.RETRY,
                RetryInfo(attempt=self.state.retry_count, max_attempts=self.max_retries, error=error),
            )
            self._retry_timer.schedule(self.retry_delay, self._run_retry)
            return

        self._cancel_schedule()
        self.state.phase = PollingPhase.STOPPED
        logger.error("Retries exhausted; polling stopped")
        self._bus.emit(EventType.FETCH_ERROR, error)

    async def _run_retry(self) -> None:
        # Interval fetches stay suppressed until the retry itself has finished
        await self._do_fetch()
        if not self._retry_timer.is_active:
            self.state.is_retrying = False


__all__ = ["PollingEngine"]
