"""Core components for orderprint."""

from orderprint.core.events import Event, EventBus, EventType, order_received_event

__all__ = [
    "Event",
    "EventBus",
    "EventType",
    "order_received_event",
]
