"""Maps aiohttp and socket failures onto ``TransportError`` kinds."""

from __future__ import annotations

import asyncio
import errno
from typing import Iterator, Optional

from ..exceptions import TransportError, TransportErrorKind

_PROTOCOL_MISMATCH_SIGNATURES = ("wrong_version_number", "wrong version number", "eproto")
_REFUSED_SIGNATURES = ("econnrefused", "connection refused", "connect call failed")


def _chain(exc: BaseException) -> Iterator[BaseException]:
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        os_error = getattr(current, "os_error", None)
        if isinstance(os_error, BaseException) and id(os_error) not in seen:
            seen.add(id(os_error))
            yield os_error
        current = current.__cause__ or current.__context__


def _chain_text(exc: BaseException) -> str:
    return " ".join(str(item) for item in _chain(exc)).lower()


def is_protocol_mismatch(exc: BaseException) -> bool:
    """True when a TLS handshake hit a plaintext listener."""
    text = _chain_text(exc)
    return any(signature in text for signature in _PROTOCOL_MISMATCH_SIGNATURES)


def is_connection_refused(exc: BaseException) -> bool:
    for item in _chain(exc):
        if isinstance(item, ConnectionRefusedError):
            return True
        if isinstance(item, OSError) and item.errno == errno.ECONNREFUSED:
            return True
    text = _chain_text(exc)
    return any(signature in text for signature in _REFUSED_SIGNATURES)


def map_transport_error(exc: BaseException, port: int) -> TransportError:
    """Wrap *exc*; the message keeps the signature text the recovery classifier matches on."""
    if isinstance(exc, asyncio.TimeoutError):
        return TransportError("request timeout", kind=TransportErrorKind.TIMEOUT, port=port)
    if is_protocol_mismatch(exc):
        return TransportError(f"EPROTO: {exc}", kind=TransportErrorKind.PROTOCOL_MISMATCH, port=port)
    if is_connection_refused(exc):
        return TransportError(
            f"connect ECONNREFUSED 127.0.0.1:{port}", kind=TransportErrorKind.CONNECTION_REFUSED, port=port
        )
    return TransportError(f"request failed: {exc}", kind=TransportErrorKind.GENERIC_IO, port=port)
