"""
Client session.

Owns every component of one room-client connection (socket, correlator,
router, state store, lifecycles) and runs the connect / join / load flows
on top of them. Nothing here is process-global; tests build as many
sessions as they like.
"""

import time
from typing import Callable, List, Optional, Union

from pydantic import ValidationError

from common.src.protocol import RoomTemplateSummary

from .config import ClientConfig, get_config
from .core.event_bus import EventBus
from .core.ids import IdGenerator
from .game.isometric import CoordinateMapper, IsoProjection
from .game.lifecycle import FurnitureLifecycle, PlayerLifecycle
from .game.room_state import RoomDescriptor, RoomStateStore
from .logging_config import get_logger
from .network.connection import ConnectionSession
from .network.correlator import RequestCorrelator
from .network.errors import ConnectionClosedError, RoomClientError
from .network.handlers import register_all_handlers
from .network.message_sender import MessageSender
from .network.router import MessageRouter

logger = get_logger(__name__)


class ClientSession:
    """Aggregate of all room client state for one connection."""

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        connector: Optional[Callable] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or get_config()
        room_cfg = self.config.room
        player_cfg = self.config.player

        self.event_bus = EventBus()
        self.store = RoomStateStore(self.event_bus, self_username=player_cfg.self_username)
        self.mapper = CoordinateMapper(
            IsoProjection(room_cfg.tile_width, room_cfg.tile_height, room_cfg.origin_x, room_cfg.origin_y)
        )

        self.connection = ConnectionSession(self.config.server.websocket_url, self.event_bus, connector)
        self.correlator = RequestCorrelator(
            self.connection.send,
            ids=IdGenerator(prefix="r"),
            default_timeout=self.config.network.request_timeout,
        )
        self.router = MessageRouter(self.correlator, self.store)
        self.handlers = register_all_handlers(self.router, self.store)
        self.sender = MessageSender(self.connection, self.correlator)

        self.furniture = FurnitureLifecycle(self.store, self.mapper, self.sender, ids=IdGenerator(prefix="f"))
        self.players = PlayerLifecycle(
            self.store,
            self.mapper,
            self.sender,
            furniture=self.furniture,
            move_duration=player_cfg.move_duration,
            clock=clock,
        )

        self.connection.set_frame_handler(self.router.feed)
        self.connection.add_close_listener(self._on_connection_closed)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def start(self) -> bool:
        """
        Connect and bring the client into its first room.

        Spawns the local player, joins the default room, subscribes to it,
        then loads the configured initial template if the server has one.

        Returns:
            False if the socket could not be opened
        """
        self.router.start()
        if not await self.connection.connect():
            return False

        player_cfg = self.config.player
        self.store.spawn_player(player_cfg.self_username, player_cfg.spawn_x, player_cfg.spawn_y)
        logger.info("Spawned player avatar.")

        await self.join_room(self.config.room.default_room)
        await self.subscribe_room()

        templates = await self.fetch_room_templates()
        index = self.config.room.initial_template_index
        if index is not None and 0 <= index < len(templates):
            await self.load_room_template(templates[index].id)
        return True

    async def stop(self) -> None:
        await self.connection.disconnect()
        await self.router.stop()

    def _on_connection_closed(self) -> None:
        self.correlator.reject_all(ConnectionClosedError)

    def tick(self, now: Optional[float] = None) -> List[str]:
        """Per-frame update; returns players whose walk just finished."""
        return self.players.tick(now)

    # =========================================================================
    # ROOMS
    # =========================================================================

    async def join_room(self, name: str) -> bool:
        """Send ``/join <name>`` and switch to a default rectangular room."""
        if not self.connection.is_connected:
            logger.warning("WebSocket not connected yet")
            return False

        await self.sender.join(name)
        room_cfg = self.config.room
        self.store.load_room(RoomDescriptor.rectangular(name, room_cfg.default_cols, room_cfg.default_rows))
        self.store.redraw()
        return True

    async def subscribe_room(self, name: Optional[str] = None) -> bool:
        name = name or self.store.room_name
        if not name:
            return False
        return await self.sender.subscribe_room(name)

    async def fetch_room_templates(self) -> List[RoomTemplateSummary]:
        """Fetch and store the template list. Failures are logged, not raised."""
        try:
            templates = await self.sender.get_room_templates()
        except (RoomClientError, ValidationError) as e:
            logger.error(f"Failed to load room templates: {e}")
            return []

        self.store.set_room_templates(templates)
        return templates

    async def load_room_template(self, template_id: Union[int, str]) -> bool:
        """
        Load a room template and its persisted furniture.

        Returns:
            True if the room was loaded
        """
        try:
            template = await self.sender.get_room_template(template_id)
        except (RoomClientError, ValidationError) as e:
            logger.error(f"Failed to load room template {template_id}: {e}")
            return False

        room_cfg = self.config.room
        descriptor = RoomDescriptor.from_template(
            template,
            default_cols=room_cfg.default_cols,
            default_rows=room_cfg.default_rows,
            default_skew_angle=room_cfg.default_skew_angle,
        )
        self.store.load_room(descriptor)
        self.mapper.configure(room_cfg.tile_width, room_cfg.tile_height, room_cfg.origin_x, room_cfg.origin_y)

        try:
            records = await self.sender.get_room_furniture(descriptor.id)
        except (RoomClientError, ValidationError) as e:
            logger.error(f"Failed to load furniture for room {descriptor.name!r}: {e}")
            records = None

        if records is not None and self.store.room is descriptor:
            self.store.replace_furniture(records)
        self.store.redraw()

        if records is None:
            return False

        logger.info(f'Loaded room template "{descriptor.name}" ({descriptor.cols}x{descriptor.rows})')
        await self.subscribe_room(descriptor.name)
        return True
