"""Discover the local language server and watch its model quota."""

from .connection_client import ConnectionClient
from .endpoint_discoverer import EndpointDiscoverer
from .events import EventBus, EventType
from .exceptions import (
    AuthPreconditionError,
    ConfigurationError,
    DiscoveryError,
    QuotaWatcherError,
    ResponseCodeError,
    ResponseParseError,
    TransportError,
    TransportErrorKind,
)
from .models import (
    ApiMethod,
    ConnectionInfo,
    ErrorType,
    ModelQuotaInfo,
    ProcessInfo,
    PromptCreditsInfo,
    QuotaSnapshot,
    RetryInfo,
)
from .polling_engine import PollingEngine
from .process_inspector import ProcessInspector
from .quota_engine import QuotaEngine
from .recovery_policy import RecoveryChoice, RecoveryPolicy
from .recovery_policy_helpers import classify_error
from .watcher_config import WatcherConfig, load_watcher_config

__version__ = "0.1.0"

__all__ = [
    "ApiMethod",
    "AuthPreconditionError",
    "ConfigurationError",
    "ConnectionClient",
    "ConnectionInfo",
    "DiscoveryError",
    "EndpointDiscoverer",
    "ErrorType",
    "EventBus",
    "EventType",
    "ModelQuotaInfo",
    "PollingEngine",
    "ProcessInfo",
    "ProcessInspector",
    "PromptCreditsInfo",
    "QuotaEngine",
    "QuotaSnapshot",
    "QuotaWatcherError",
    "RecoveryChoice",
    "RecoveryPolicy",
    "ResponseCodeError",
    "ResponseParseError",
    "RetryInfo",
    "TransportError",
    "TransportErrorKind",
    "WatcherConfig",
    "classify_error",
    "load_watcher_config",
]
