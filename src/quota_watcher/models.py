"""Value types shared across discovery, transport and polling."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional, Tuple


class ApiMethod(Enum):
    """Language server RPC used to read quota data."""

    GET_USER_STATUS = "GET_USER_STATUS"
    COMMAND_MODEL_CONFIG = "COMMAND_MODEL_CONFIG"

    def toggled(self) -> "ApiMethod":
        if self is ApiMethod.GET_USER_STATUS:
            return ApiMethod.COMMAND_MODEL_CONFIG
        return ApiMethod.GET_USER_STATUS


class ErrorType(Enum):
    """Recovery categories assigned by the error classifier."""

    CONNECTION_REFUSED = "connection_refused"
    PROTOCOL_ERROR = "protocol_error"
    PORT_DETECTION = "port_detection"
    TIMEOUT = "timeout"
    AUTH_ERROR = "auth_error"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ProcessInfo:
    """Language server process facts parsed from its command line."""

    pid: int
    raw_command_line: str
    csrf_token: str = field(repr=False)
    extension_port: Optional[int] = None
    connect_port: Optional[int] = None
    listening_ports: Tuple[int, ...] = ()

    @property
    def port_candidates(self) -> Tuple[int, ...]:
        """Ports to probe, connect port first, without duplicates."""
        ordered = [self.connect_port, self.extension_port, *self.listening_ports]
        seen: list[int] = []
        for port in ordered:
            if port is not None and port not in seen:
                seen.append(port)
        return tuple(seen)


@dataclass(frozen=True)
class ConnectionInfo:
    """Verified endpoint for the language server; replaced wholesale on rediscovery."""

    connect_port: int
    csrf_token: str = field(repr=False)
    http_fallback_port: Optional[int] = None
    source: str = "process"
    confidence: str = "high"

    @property
    def has_token(self) -> bool:
        return bool(self.csrf_token)


@dataclass(frozen=True)
class PromptCreditsInfo:
    available: float
    monthly: float

    @property
    def used_percentage(self) -> float:
        return ((self.monthly - self.available) / self.monthly) * 100

    @property
    def remaining_percentage(self) -> float:
        return (self.available / self.monthly) * 100


@dataclass(frozen=True)
class ModelQuotaInfo:
    """Per-model quota entry."""

    label: str
    model_id: str
    remaining_fraction: Optional[float] = None
    reset_time: Optional[datetime] = None

    @property
    def is_exhausted(self) -> bool:
        return self.remaining_fraction is None or self.remaining_fraction == 0

    @property
    def remaining_percentage(self) -> Optional[float]:
        if self.remaining_fraction is None:
            return None
        return self.remaining_fraction * 100

    def time_until_reset(self, now: Optional[datetime] = None) -> Optional[timedelta]:
        """Time left until the quota resets, measured against *now* (UTC by default)."""
        if self.reset_time is None:
            return None
        current = now if now is not None else datetime.now(timezone.utc)
        return self.reset_time - current


@dataclass(frozen=True)
class QuotaSnapshot:
    timestamp: datetime
    models: Tuple[ModelQuotaInfo, ...] = ()
    prompt_credits: Optional[PromptCreditsInfo] = None
    plan_name: Optional[str] = None


@dataclass(frozen=True)
class ErrorRecord:
    error_type: ErrorType
    message: str
    timestamp: float


@dataclass(frozen=True)
class RetryInfo:
    attempt: int
    max_attempts: int
    error: Optional[BaseException] = field(default=None, compare=False)


def format_time_until_reset(delta: Optional[timedelta]) -> str:
    """Render a reset countdown as ``1d 2h``, ``3h 4m``, ``5m 6s`` or ``7s``."""
    if delta is None:
        return "n/a"
    total = int(delta.total_seconds())
    if total <= 0:
        return "expired"
    minutes, seconds = divmod(total, 60)
    hours, minutes = divmod(minutes, 60)
    days, hours = divmod(hours, 24)
    if days:
        return f"{days}d {hours}h"
    if hours:
        return f"{hours}h {minutes}m"
    if minutes:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


__all__ = [
    "ApiMethod",
    "ConnectionInfo",
    "ErrorRecord",
    "ErrorType",
    "ModelQuotaInfo",
    "ProcessInfo",
    "PromptCreditsInfo",
    "QuotaSnapshot",
    "RetryInfo",
    "format_time_until_reset",
]
