"""
Runtime utilities for the futures replay engine.

Provides:
- Event bus for observer pub/sub
- Session ID generation for log and event correlation
"""

from futures_replay.runtime.event_bus import (
    Event,
    EventBus,
    EventType,
    get_event_bus,
    reset_event_bus,
)
from futures_replay.runtime.run_context import generate_session_id

__all__ = [
    # Event bus
    "Event",
    "EventBus",
    "EventType",
    "get_event_bus",
    "reset_event_bus",
    # Session context
    "generate_session_id",
]
