"""
Furniture and player lifecycles.

Turns UI gestures (drags, drops, tile clicks) into validated, optimistic
store mutations followed by the matching outbound command. A gesture that
fails occupancy leaves the store untouched and sends nothing.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union, TYPE_CHECKING

from common.src.constants import MOVEMENT_ANIMATION_DURATION

from ..core.event_bus import EventType
from ..core.ids import IdGenerator
from ..logging_config import get_logger
from .isometric import CoordinateMapper
from .room_state import FurnitureItem, RoomStateStore

if TYPE_CHECKING:
    from ..network.message_sender import MessageSender

logger = get_logger(__name__)


@dataclass
class PlacementGhost:
    """A palette item being dragged into the room; not yet part of the store."""
    uid: str
    proto_id: str
    tx: int
    ty: int
    color: Optional[Union[int, str]] = None
    over_room: bool = True


class FurnitureLifecycle:
    """
    Drag protocol for furniture.

    settled -> dragging -> settled: a drop on an occupiable tile commits the
    tile locally and sends UPDATE_FURNITURE; any other drop reverts to the
    pre-drag tile without a send. At most one drag is active at a time.
    """

    def __init__(
        self,
        store: RoomStateStore,
        mapper: CoordinateMapper,
        sender: "MessageSender",
        ids: Optional[IdGenerator] = None,
    ):
        self.store = store
        self.mapper = mapper
        self.sender = sender
        self.ids = ids or IdGenerator()
        self._dragging_uid: Optional[str] = None
        self.ghost: Optional[PlacementGhost] = None

    @property
    def is_dragging(self) -> bool:
        return self._dragging_uid is not None or self.ghost is not None

    @property
    def dragging_uid(self) -> Optional[str]:
        return self._dragging_uid

    # =========================================================================
    # EXISTING ITEMS
    # =========================================================================

    def begin_drag(self, uid: str) -> bool:
        """Pick up an existing item."""
        if self.is_dragging:
            return False
        item = self.store.begin_furniture_drag(uid)
        if item is None:
            return False
        self._dragging_uid = item.uid
        self.store.event_bus.emit(EventType.DRAG_STARTED, {"uid": item.uid, "tx": item.tx, "ty": item.ty})
        return True

    def drag_to(self, x: float, y: float) -> Optional[Tuple[int, int]]:
        """Follow the pointer; the tentative tile only moves over room floor."""
        if self._dragging_uid is None:
            return None
        tx, ty = self.mapper.screen_to_tile(x, y)
        if not self.store.occupancy.inside_room(tx, ty):
            return None
        if not self.store.update_furniture_drag(self._dragging_uid, tx, ty):
            # Item vanished mid-drag (full resync)
            self._dragging_uid = None
            return None
        self.store.event_bus.emit(EventType.DRAG_MOVED, {"uid": self._dragging_uid, "tx": tx, "ty": ty})
        return (tx, ty)

    async def drop(self, x: Optional[float] = None, y: Optional[float] = None) -> bool:
        """
        Release the dragged item.

        With screen coordinates the drop tile is taken from them, otherwise
        from the last tentative tile. Returns True when the move committed.
        """
        uid = self._dragging_uid
        if uid is None:
            return False
        self._dragging_uid = None

        item = self.store.get_furniture(uid)
        if item is None or not item.is_dragging:
            logger.debug(f"Dragged furniture {uid} disappeared before drop")
            self.store.event_bus.emit(EventType.DRAG_ENDED, {"uid": uid, "committed": False})
            return False

        if x is not None and y is not None:
            tx, ty = self.mapper.screen_to_tile(x, y)
        else:
            tx, ty = item.position

        room = self.store.room_name
        if not self.store.commit_furniture_drag(uid, tx, ty):
            self.store.cancel_furniture_drag(uid)
            self._reject(uid, tx, ty)
            self.store.event_bus.emit(EventType.DRAG_ENDED, {"uid": uid, "committed": False})
            return False

        await self.sender.update_furniture(room, item.uid, tx, ty)
        self.store.event_bus.emit(EventType.DRAG_ENDED, {"uid": uid, "committed": True})
        return True

    def cancel_drag(self) -> bool:
        uid = self._dragging_uid
        if uid is None:
            return False
        self._dragging_uid = None
        self.store.cancel_furniture_drag(uid)
        self.store.event_bus.emit(EventType.DRAG_ENDED, {"uid": uid, "committed": False})
        return True

    # =========================================================================
    # PALETTE PLACEMENT
    # =========================================================================

    def start_placement(
        self,
        proto_id: str,
        x: float,
        y: float,
        color: Optional[Union[int, str]] = None,
    ) -> Optional[PlacementGhost]:
        """Create a ghost for a new item under the pointer, clamped into the room."""
        if self.is_dragging or self.store.room is None:
            return None

        tx, ty = self.store.occupancy.clamp(*self.mapper.screen_to_tile(x, y))
        self.ghost = PlacementGhost(
            uid=self.ids.next_id(),
            proto_id=proto_id,
            tx=tx,
            ty=ty,
            color=color,
        )
        self.store.event_bus.emit(EventType.DRAG_STARTED, {"uid": self.ghost.uid, "tx": tx, "ty": ty, "ghost": True})
        return self.ghost

    def drag_placement(self, x: float, y: float) -> Optional[Tuple[int, int]]:
        if self.ghost is None:
            return None
        tx, ty = self.mapper.screen_to_tile(x, y)
        self.ghost.over_room = self.store.occupancy.inside_room(tx, ty)
        if not self.ghost.over_room:
            return None
        self.ghost.tx, self.ghost.ty = tx, ty
        self.store.event_bus.emit(EventType.DRAG_MOVED, {"uid": self.ghost.uid, "tx": tx, "ty": ty, "ghost": True})
        return (tx, ty)

    async def finish_placement(self, x: Optional[float] = None, y: Optional[float] = None) -> Optional[FurnitureItem]:
        """Drop the ghost: create the item and send CREATE_FURNITURE, or discard it."""
        ghost = self.ghost
        if ghost is None:
            return None
        self.ghost = None

        if x is not None and y is not None:
            tx, ty = self.mapper.screen_to_tile(x, y)
        else:
            tx, ty = ghost.tx, ghost.ty

        item = FurnitureItem(uid=ghost.uid, proto_id=ghost.proto_id, tx=tx, ty=ty, color=ghost.color)
        room = self.store.room_name
        if not self.store.add_furniture(item):
            self._reject(ghost.uid, tx, ty)
            self.store.event_bus.emit(EventType.DRAG_ENDED, {"uid": ghost.uid, "committed": False, "ghost": True})
            return None

        await self.sender.create_furniture(room, item.uid, item.proto_id, tx, ty, color=item.color)
        logger.info(f"Placed {item.proto_id} at ({tx}, {ty})")
        self.store.event_bus.emit(EventType.DRAG_ENDED, {"uid": item.uid, "committed": True, "ghost": True})
        return item

    def _reject(self, uid: str, tx: int, ty: int) -> None:
        reason = "blocked" if self.store.occupancy.inside_room(tx, ty) else "outside_room"
        logger.warning(f"Placement of {uid} at ({tx}, {ty}) rejected: {reason}")
        self.store.event_bus.emit(EventType.PLACEMENT_REJECTED, {"uid": uid, "tx": tx, "ty": ty, "reason": reason})


class PlayerLifecycle:
    """
    Movement protocol for players.

    One active movement intent per player: a new move supersedes the
    current walk and starts from the player's logical tile.
    """

    def __init__(
        self,
        store: RoomStateStore,
        mapper: CoordinateMapper,
        sender: "MessageSender",
        furniture: Optional[FurnitureLifecycle] = None,
        move_duration: float = MOVEMENT_ANIMATION_DURATION,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.mapper = mapper
        self.sender = sender
        self.furniture = furniture
        self.move_duration = move_duration
        self.clock = clock

    def spawn(self, username: str, tx: int, ty: int):
        return self.store.spawn_player(username, tx, ty)

    def move_player(self, username: str, tx: int, ty: int) -> bool:
        """Validate and apply a move locally. No network traffic."""
        if username not in self.store.players:
            return False

        if not self.store.occupancy.inside_room(tx, ty):
            logger.warning(f"Cannot move {username} to ({tx}, {ty}) - outside room bounds.")
            self.store.event_bus.emit(EventType.MOVE_REJECTED, {"username": username, "tx": tx, "ty": ty, "reason": "outside_room"})
            return False

        if self.store.occupancy.is_blocked(tx, ty):
            logger.warning(f"Cannot move {username} to ({tx}, {ty}) - wall blocking.")
            self.store.event_bus.emit(EventType.MOVE_REJECTED, {"username": username, "tx": tx, "ty": ty, "reason": "blocked"})
            return False

        return self.store.commit_player_move(username, tx, ty, self.clock(), self.move_duration)

    async def click_tile(self, x: float, y: float) -> bool:
        """Walk the local player to the clicked tile and tell the server."""
        if self.furniture is not None and self.furniture.is_dragging:
            return False
        if self.store.room is None:
            return False

        tx, ty = self.mapper.screen_to_tile(x, y)
        if not self.store.occupancy.inside_room(tx, ty):
            return False

        logger.info(f"Clicked tile ({tx}, {ty})")
        if not self.move_player(self.store.self_username, tx, ty):
            return False

        await self.sender.tile_click(self.store.room_name, tx, ty)
        return True

    def tick(self, now: Optional[float] = None):
        """Settle finished walks. Called once per rendered frame."""
        return self.store.advance_players(self.clock() if now is None else now)
