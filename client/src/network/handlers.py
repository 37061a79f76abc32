"""
Message handlers for server-to-client broadcast events.

Each handler receives an already validated event model and applies it to
the room state store.
"""

from typing import TYPE_CHECKING

from common.src.protocol import (
    FurnitureUpdatedEvent,
    MessageType,
    RoomFurnitureEvent,
    RoomStateEvent,
    RoomTemplateEvent,
    RoomTemplatesEvent,
)

from ..game.room_state import RoomStateStore
from ..logging_config import get_logger

if TYPE_CHECKING:
    from .router import MessageRouter

logger = get_logger(__name__)


class RoomEventHandlers:
    """Container for all broadcast handlers."""

    def __init__(self, store: RoomStateStore):
        self.store = store

    def handle_room_templates(self, event: RoomTemplatesEvent) -> None:
        """Store the template list for the room picker."""
        self.store.set_room_templates(event.data)

    def handle_room_template(self, event: RoomTemplateEvent) -> None:
        # Templates are only loaded through a correlated GET_ROOM_TEMPLATE
        logger.debug("Ignoring unsolicited ROOM_TEMPLATE broadcast")

    def handle_room_furniture(self, event: RoomFurnitureEvent) -> None:
        """Replace all furniture with the listed records."""
        count = self.store.replace_furniture(event.data)
        logger.debug(f"ROOM_FURNITURE: {count} item(s)")

    def handle_room_state(self, event: RoomStateEvent) -> None:
        """Full resync of the current room's furniture."""
        if not self.store.is_current_room(event.room):
            logger.debug(f"Ignoring ROOM_STATE for {event.room!r}")
            return
        count = self.store.replace_furniture(event.furniture)
        logger.info(f"Room {event.room!r} resynced with {count} furniture item(s)")

    def handle_furniture_updated(self, event: FurnitureUpdatedEvent) -> None:
        """Create or update one item in the current room."""
        if not self.store.is_current_room(event.room):
            logger.debug(f"Ignoring FURNITURE_UPDATED for {event.room!r}")
            return
        try:
            item, created = self.store.apply_furniture_update(event.furniture)
        except ValueError as e:
            logger.warning(f"Dropping FURNITURE_UPDATED: {e}")
            return
        logger.debug(f"Furniture {item.uid} {'created' if created else 'updated'} at ({item.tx}, {item.ty})")


def register_all_handlers(router: "MessageRouter", store: RoomStateStore) -> RoomEventHandlers:
    """Register all broadcast handlers with the router."""
    handlers = RoomEventHandlers(store)

    router.register_handler(MessageType.ROOM_TEMPLATES, handlers.handle_room_templates)
    router.register_handler(MessageType.ROOM_TEMPLATE, handlers.handle_room_template)
    router.register_handler(MessageType.ROOM_FURNITURE, handlers.handle_room_furniture)
    router.register_handler(MessageType.ROOM_STATE, handlers.handle_room_state)
    router.register_handler(MessageType.FURNITURE_UPDATED, handlers.handle_furniture_updated)

    logger.info("All broadcast handlers registered")
    return handlers
