"""Event bus and event names."""

from .event_bus import ErrorHandler, EventBus, EventHandler, Subscription
from .event_types import EventType

__all__ = ["ErrorHandler", "EventBus", "EventHandler", "EventType", "Subscription"]
