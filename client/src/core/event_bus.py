"""
Core event bus for internal client communication.

Provides a pub/sub system so renderers and UI glue can follow room state
changes without the state store knowing about them.
"""

from typing import Callable, Dict, List, Any, Optional
from enum import Enum, auto
import asyncio
import inspect
from dataclasses import dataclass, field

from ..logging_config import get_logger

logger = get_logger(__name__)


class EventType(Enum):
    """Internal client event types."""
    # Connection events
    CONNECTING = auto()
    CONNECTED = auto()
    DISCONNECTED = auto()
    CONNECTION_ERROR = auto()

    # Room events
    ROOM_TEMPLATES_RECEIVED = auto()
    ROOM_LOADED = auto()
    ROOM_REDRAWN = auto()

    # Furniture events
    FURNITURE_ADDED = auto()
    FURNITURE_MOVED = auto()
    FURNITURE_RESYNCED = auto()
    DRAG_STARTED = auto()
    DRAG_MOVED = auto()
    DRAG_ENDED = auto()
    PLACEMENT_REJECTED = auto()

    # Player events
    PLAYER_SPAWNED = auto()
    PLAYER_MOVED = auto()
    PLAYER_REMOVED = auto()
    MOVE_REJECTED = auto()

    # Plain-text events
    CHAT_MESSAGE_RECEIVED = auto()
    STATUS_RECEIVED = auto()


@dataclass
class Event:
    """Event data structure."""
    type: EventType
    data: Dict[str, Any] = field(default_factory=dict)
    source: Optional[str] = None


class EventBus:
    """Central event bus for client communication."""

    def __init__(self):
        self._handlers: Dict[EventType, List[Callable]] = {}
        self._once_handlers: Dict[EventType, List[Callable]] = {}

    def subscribe(self, event_type: EventType, handler: Callable[[Event], None]) -> None:
        """Subscribe a handler to an event type."""
        if event_type not in self._handlers:
            self._handlers[event_type] = []
        self._handlers[event_type].append(handler)

    def subscribe_once(self, event_type: EventType, handler: Callable[[Event], None]) -> None:
        """Subscribe a handler that will be called only once."""
        if event_type not in self._once_handlers:
            self._once_handlers[event_type] = []
        self._once_handlers[event_type].append(handler)

    def unsubscribe(self, event_type: EventType, handler: Callable[[Event], None]) -> None:
        """Unsubscribe a handler from an event type."""
        if event_type in self._handlers and handler in self._handlers[event_type]:
            self._handlers[event_type].remove(handler)

        if event_type in self._once_handlers and handler in self._once_handlers[event_type]:
            self._once_handlers[event_type].remove(handler)

    def emit(self, event_type: EventType, data: Optional[Dict[str, Any]] = None, source: Optional[str] = None) -> None:
        """
        Emit an event to all subscribers.

        Note: Async handlers will be scheduled as tasks on the running event loop.
        For guaranteed async execution, use emit_async() instead.
        """
        event = Event(type=event_type, data=data or {}, source=source)

        for handler in list(self._handlers.get(event_type, [])):
            self._dispatch(handler, event)

        once_handlers = self._once_handlers.pop(event_type, [])
        for handler in once_handlers:
            self._dispatch(handler, event)

    async def emit_async(self, event_type: EventType, data: Optional[Dict[str, Any]] = None, source: Optional[str] = None) -> None:
        """Emit an event asynchronously."""
        event = Event(type=event_type, data=data or {}, source=source)

        handlers = list(self._handlers.get(event_type, []))
        handlers.extend(self._once_handlers.pop(event_type, []))
        for handler in handlers:
            try:
                if inspect.iscoroutinefunction(handler):
                    await handler(event)
                else:
                    handler(event)
            except Exception:
                logger.exception(f"Error in async event handler for {event_type.name}")

    def _dispatch(self, handler: Callable, event: Event) -> None:
        try:
            if inspect.iscoroutinefunction(handler):
                # Schedule async handler as a task
                try:
                    loop = asyncio.get_running_loop()
                    loop.create_task(handler(event))
                except RuntimeError:
                    logger.warning(f"Async handler {handler} registered but no event loop running")
            else:
                handler(event)
        except Exception:
            logger.exception(f"Error in event handler for {event.type.name}")

    def clear(self, event_type: Optional[EventType] = None) -> None:
        """Clear all handlers for an event type, or all handlers if None."""
        if event_type:
            self._handlers.pop(event_type, None)
            self._once_handlers.pop(event_type, None)
        else:
            self._handlers.clear()
            self._once_handlers.clear()
