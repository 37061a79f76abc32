"""Core systems for the room client."""

from .event_bus import EventBus, EventType, Event
from .ids import IdGenerator, to_base36

__all__ = [
    "EventBus",
    "EventType",
    "Event",
    "IdGenerator",
    "to_base36",
]
