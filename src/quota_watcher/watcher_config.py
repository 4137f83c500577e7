"""
Watcher configuration.

All durations are in seconds. Values come from environment variables with
``.env`` file defaults; anything unset falls back to the defaults below.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from functools import partial
from typing import Optional

from .config import ConfigurationError, env_bool, env_choice, env_seconds, env_str
from .models import ApiMethod

MIN_POLL_INTERVAL_SECONDS = 10.0

_DEFAULT_SECONDS = {
    "QUOTA_WATCHER_POLL_INTERVAL_SECONDS": 60.0,
    "QUOTA_WATCHER_REQUEST_TIMEOUT_SECONDS": 5.0,
    "QUOTA_WATCHER_POLL_START_DELAY_SECONDS": 2.0,
}

_DEFAULT_FLAGS = {
    "QUOTA_WATCHER_ENABLED": True,
    "QUOTA_WATCHER_ALLOW_HTTP_FALLBACK": False,
}


def require_env_seconds(name: str) -> float:
    value = env_seconds(name, or_value=None)
    if value is not None:
        return value
    if name in _DEFAULT_SECONDS:
        return _DEFAULT_SECONDS[name]
    raise ConfigurationError.missing_value(name, "no environment value and no built-in default")


def require_env_flag(name: str) -> bool:
    value = env_bool(name, or_value=None)
    if value is not None:
        return value
    if name in _DEFAULT_FLAGS:
        return _DEFAULT_FLAGS[name]
    raise ConfigurationError.missing_value(name, "no environment value and no built-in default")


def _api_method_from_env() -> ApiMethod:
    choices = [member.value for member in ApiMethod]
    return ApiMethod(env_choice("QUOTA_WATCHER_API_METHOD", choices, ApiMethod.GET_USER_STATUS.value))


def _process_name_from_env() -> Optional[str]:
    return env_str("QUOTA_WATCHER_PROCESS_NAME")


def clamp_poll_interval(seconds: float) -> float:
    """Polling never runs faster than once every ``MIN_POLL_INTERVAL_SECONDS``."""
    return max(MIN_POLL_INTERVAL_SECONDS, float(seconds))


@dataclass(frozen=True)
class WatcherConfig:
    """
    Runtime settings for the quota engine.

    Attributes:
        enabled: Start polling automatically after a successful detection
        poll_interval_seconds: Interval between scheduled fetches (clamped to >= 10)
        api_method: RPC used to read quota data
        allow_http_fallback: Permit a single plaintext retry on TLS protocol mismatch
        request_timeout_seconds: Per-request timeout
        poll_start_delay_seconds: Delay between detection and the first poll
        process_name: Override for the language server executable name
    """

    enabled: bool = field(default_factory=partial(require_env_flag, "QUOTA_WATCHER_ENABLED"))
    poll_interval_seconds: float = field(
        default_factory=partial(require_env_seconds, "QUOTA_WATCHER_POLL_INTERVAL_SECONDS")
    )
    api_method: ApiMethod = field(default_factory=_api_method_from_env)
    allow_http_fallback: bool = field(
        default_factory=partial(require_env_flag, "QUOTA_WATCHER_ALLOW_HTTP_FALLBACK")
    )
    request_timeout_seconds: float = field(
        default_factory=partial(require_env_seconds, "QUOTA_WATCHER_REQUEST_TIMEOUT_SECONDS")
    )
    poll_start_delay_seconds: float = field(
        default_factory=partial(require_env_seconds, "QUOTA_WATCHER_POLL_START_DELAY_SECONDS")
    )
    process_name: Optional[str] = field(default_factory=_process_name_from_env)

    def __post_init__(self) -> None:
        object.__setattr__(self, "poll_interval_seconds", clamp_poll_interval(self.poll_interval_seconds))
        if self.request_timeout_seconds <= 0:
            raise ConfigurationError.invalid_value(
                "request_timeout_seconds", self.request_timeout_seconds, "Must be positive"
            )
        if self.poll_start_delay_seconds < 0:
            raise ConfigurationError.invalid_value(
                "poll_start_delay_seconds", self.poll_start_delay_seconds, "Must be non-negative"
            )

    def with_overrides(self, **changes) -> "WatcherConfig":
        return replace(self, **changes)


def load_watcher_config() -> WatcherConfig:
    """Build a ``WatcherConfig`` from the environment."""
    return WatcherConfig()


__all__ = [
    "MIN_POLL_INTERVAL_SECONDS",
    "WatcherConfig",
    "clamp_poll_interval",
    "load_watcher_config",
]
