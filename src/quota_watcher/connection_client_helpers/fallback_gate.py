"""Decides whether a failed TLS request may be retried over plaintext HTTP."""

from __future__ import annotations

import logging
from typing import Optional

from ..exceptions import TransportError, TransportErrorKind

logger = logging.getLogger(__name__)

MAX_HTTP_FALLBACK_COUNT = 5


class FallbackGate:
    """Allows at most ``max_fallbacks`` plaintext retries between resets."""

    def __init__(self, max_fallbacks: int = MAX_HTTP_FALLBACK_COUNT) -> None:
        self.max_fallbacks = max_fallbacks
        self.count = 0

    def should_fallback(self, error: TransportError, *, allowed: bool, alternate_port: Optional[int]) -> bool:
        if not allowed or alternate_port is None:
            return False
        if error.kind is not TransportErrorKind.PROTOCOL_MISMATCH:
            return False
        if self.count >= self.max_fallbacks:
            logger.warning("HTTP fallback limit reached (%d); propagating TLS error", self.max_fallbacks)
            return False
        return True

    def record(self) -> int:
        self.count += 1
        return self.count

    def reset(self) -> None:
        self.count = 0
