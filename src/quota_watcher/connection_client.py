"""JSON-over-HTTPS client for the local language server."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional

import aiohttp
import orjson

from .connection_client_helpers import (
    MAX_HTTP_FALLBACK_COUNT,
    FallbackGate,
    SessionManager,
    map_transport_error,
    validate_response_code,
)
from .connection_client_helpers.session_manager import SessionFactory
from .exceptions import AuthPreconditionError, TransportError, TransportErrorKind
from .models import ConnectionInfo

logger = logging.getLogger(__name__)

LOOPBACK_HOST = "127.0.0.1"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 5.0
CSRF_HEADER = "X-Codeium-Csrf-Token"


def build_headers(body: bytes, csrf_token: str) -> Dict[str, str]:
    return {
        "Content-Type": "application/json",
        "Content-Length": str(len(body)),
        "Connect-Protocol-Version": "1",
        CSRF_HEADER: csrf_token,
    }


class ConnectionClient:
    """
    Sends JSON requests to the language server on the loopback interface.

    Requests go over HTTPS with certificate verification disabled; the
    endpoint is trusted because it was found through the local process
    table. A single plaintext retry is made only when fallback is enabled,
    the TLS failure is a protocol mismatch and an alternate port is known.
    """

    def __init__(
        self,
        *,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        allow_http_fallback: bool = False,
        max_http_fallbacks: int = MAX_HTTP_FALLBACK_COUNT,
        session_factory: Optional[SessionFactory] = None,
    ) -> None:
        self._sessions = SessionManager(request_timeout, session_factory)
        self._fallback = FallbackGate(max_http_fallbacks)
        self._allow_http_fallback = allow_http_fallback
        self._connection: Optional[ConnectionInfo] = None

    @property
    def connection_info(self) -> Optional[ConnectionInfo]:
        return self._connection

    @property
    def allow_http_fallback(self) -> bool:
        return self._allow_http_fallback

    @property
    def http_fallback_count(self) -> int:
        return self._fallback.count

    def set_connection_info(self, info: Optional[ConnectionInfo]) -> None:
        self._connection = info
        self._fallback.reset()

    def set_allow_http_fallback(self, allowed: bool) -> None:
        self._allow_http_fallback = allowed

    def reset_fallback_count(self) -> None:
        self._fallback.reset()

    async def send(self, path: str, body: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """
        POST *body* to *path* and return the decoded JSON object.

        Raises:
            AuthPreconditionError: No endpoint or CSRF token is configured
            TransportError: The request failed at the transport or HTTP level
            ResponseCodeError: The server answered with a non-success ``code``
        """
        info = self._connection
        if info is None or not info.csrf_token:
            raise AuthPreconditionError("CSRF token missing (unauthorized); request not sent")

        payload = orjson.dumps(body or {})
        try:
            data = await self.post_json("https", info.connect_port, path, payload, info.csrf_token)
        except TransportError as exc:
            if not self._fallback.should_fallback(
                exc, allowed=self._allow_http_fallback, alternate_port=info.http_fallback_port
            ):
                raise
            attempt = self._fallback.record()
            logger.warning(
                "TLS protocol mismatch on port %s; retrying over HTTP on port %s (%d/%d)",
                info.connect_port,
                info.http_fallback_port,
                attempt,
                self._fallback.max_fallbacks,
            )
            data = await self.post_json("http", info.http_fallback_port, path, payload, info.csrf_token)

        validate_response_code(data)
        return data

    async def probe(self, port: int, csrf_token: str, path: str) -> bool:
        """True when *port* answers *path* over TLS with HTTP 200 and a JSON object."""
        if not csrf_token:
            return False
        try:
            await self.post_json("https", port, path, orjson.dumps({}), csrf_token)
        except TransportError as exc:
            logger.debug("Probe of port %s failed: %s", port, exc)
            return False
        return True

    async def post_json(self, scheme: str, port: int, path: str, payload: bytes, csrf_token: str) -> Dict[str, Any]:
        session = await self._sessions.get_session()
        url = f"{scheme}://{LOOPBACK_HOST}:{port}{path}"
        try:
            async with session.post(url, data=payload, headers=build_headers(payload, csrf_token), ssl=False) as response:
                status = response.status
                reason = getattr(response, "reason", None)
                raw = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
            raise map_transport_error(exc, port) from exc

        if status != 200:
            detail = f" {reason}" if reason else ""
            raise TransportError(f"HTTP error: {status}{detail}", kind=TransportErrorKind.HTTP_STATUS, status=status, port=port)
        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as exc:
            raise TransportError("invalid JSON response", kind=TransportErrorKind.GENERIC_IO, port=port) from exc
        if not isinstance(data, dict):
            raise TransportError("unexpected JSON payload", kind=TransportErrorKind.GENERIC_IO, port=port)
        return data

    async def close(self) -> None:
        await self._sessions.close_session()


__all__ = ["CSRF_HEADER", "ConnectionClient", "LOOPBACK_HOST", "build_headers"]
