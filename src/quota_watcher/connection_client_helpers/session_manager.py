"""HTTP session management for the loopback client."""

import asyncio
import logging
from typing import Callable, Optional

import aiohttp

from ..exceptions import TransportError, TransportErrorKind

logger = logging.getLogger(__name__)

SessionFactory = Callable[[aiohttp.ClientTimeout], aiohttp.ClientSession]


def _default_session_factory(timeout: aiohttp.ClientTimeout) -> aiohttp.ClientSession:
    return aiohttp.ClientSession(
        timeout=timeout,
        connector=aiohttp.TCPConnector(limit=10, limit_per_host=4),
    )


class SessionManager:
    """Owns one lazily-created ``aiohttp.ClientSession``; no session is opened after ``close_session``."""

    def __init__(self, request_timeout: float, session_factory: Optional[SessionFactory] = None):
        self.request_timeout = request_timeout
        self.session: Optional[aiohttp.ClientSession] = None
        self._session_factory = session_factory or _default_session_factory
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def get_session(self) -> aiohttp.ClientSession:
        if self._closed:
            raise TransportError("HTTP session manager is closed", kind=TransportErrorKind.GENERIC_IO)
        if self.session is None or self.session.closed:
            timeout = aiohttp.ClientTimeout(total=self.request_timeout, connect=self.request_timeout)
            self.session = self._session_factory(timeout)
            logger.debug("HTTP session created (timeout=%.1fs)", self.request_timeout)
        return self.session

    async def close_session(self) -> None:
        self._closed = True
        if not self.session:
            return
        try:
            if not self.session.closed:
                await asyncio.wait_for(self.session.close(), timeout=5.0)
                logger.debug("HTTP session closed")
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:  # policy_guard: allow-silent-handler
            logger.warning("Error closing HTTP session: %s", exc)
        finally:
            self.session = None
