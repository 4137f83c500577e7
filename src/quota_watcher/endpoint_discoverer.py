"""Turns a discovered language server process into a verified endpoint."""

from __future__ import annotations

import logging
from typing import Optional

from .connection_client import ConnectionClient
from .events import EventBus, EventType
from .exceptions import DiscoveryError
from .models import ConnectionInfo, ProcessInfo
from .process_inspector import ProcessInspector

logger = logging.getLogger(__name__)

PROBE_PATH = "/exa.language_server_pb.LanguageServerService/GetUnleashData"


class EndpointDiscoverer:
    """
    Probes each candidate port of the language server and returns the first
    one that answers like the real server.

    Holds no polling state, so it is safe to call while a fetch is in flight.
    """

    def __init__(
        self,
        inspector: ProcessInspector,
        client: ConnectionClient,
        *,
        bus: Optional[EventBus] = None,
        probe_path: str = PROBE_PATH,
    ) -> None:
        self._inspector = inspector
        self._client = client
        self._bus = bus
        self._probe_path = probe_path

    def _emit(self, event: EventType, payload=None) -> None:
        if self._bus is not None:
            self._bus.emit(event, payload)

    async def detect_port(self) -> Optional[ConnectionInfo]:
        self._emit(EventType.DETECT_START)
        try:
            info = await self._detect()
        except DiscoveryError as exc:
            logger.warning("Port detection failed: %s", exc)
            self._emit(EventType.DETECT_FAILURE, exc)
            return None

        logger.info(
            "Detected language server: connect_port=%s http_fallback_port=%s token=[hidden]",
            info.connect_port,
            info.http_fallback_port,
        )
        self._emit(EventType.DETECT_SUCCESS, info)
        return info

    async def _detect(self) -> ConnectionInfo:
        process = await self._inspector.discover()
        if process is None:
            raise DiscoveryError(f"{self._inspector.process_name} process not found")

        candidates = process.port_candidates
        if not candidates:
            raise DiscoveryError(f"No candidate ports for pid {process.pid}", pid=process.pid)

        for port in candidates:
            if await self._client.probe(port, process.csrf_token, self._probe_path):
                return ConnectionInfo(
                    connect_port=port,
                    csrf_token=process.csrf_token,
                    http_fallback_port=self._fallback_port(process, port),
                )
            logger.debug("Port %s did not answer the probe", port)

        raise DiscoveryError(f"No candidate port answered for pid {process.pid}: {list(candidates)}", pid=process.pid)

    @staticmethod
    def _fallback_port(process: ProcessInfo, connect_port: int) -> Optional[int]:
        for port in (process.connect_port, process.extension_port):
            if port is not None and port != connect_port:
                return port
        return None


__all__ = ["EndpointDiscoverer", "PROBE_PATH"]
