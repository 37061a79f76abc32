"""
Client-side room state management.

Holds the authoritative-shadow model of the current room: the room
descriptor, its furniture (keyed by uid) and the players in it. Local
optimistic edits and server broadcasts both go through this store, which
is the single source of truth the renderer reads from.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Any, Optional, Tuple, Union, Iterable

from common.src.constants import (
    CHAT_HISTORY_LIMIT,
    DEFAULT_ROOM_COLS,
    DEFAULT_ROOM_ROWS,
    DEFAULT_SKEW_ANGLE,
    MOVEMENT_ANIMATION_DURATION,
    SELF_USERNAME,
    SERVER_UID_PREFIX,
)
from common.src.protocol import FurnitureRecord, RoomLayout, RoomTemplateRecord, RoomTemplateSummary

from ..core.event_bus import EventBus, EventType
from ..logging_config import get_logger
from .occupancy import OccupancyModel

logger = get_logger(__name__)


# =============================================================================
# DATA CLASSES
# =============================================================================

class FurnitureState(str, Enum):
    """Lifecycle states of a furniture item."""
    SETTLED = "settled"
    DRAGGING = "dragging"


@dataclass(frozen=True)
class RoomDescriptor:
    """A loaded room. Replaced as a whole, never edited in place."""
    id: Optional[Union[int, str]]
    name: str
    cols: int
    rows: int
    mask: Optional[Tuple[Tuple[int, ...], ...]] = None
    skew_angle: float = DEFAULT_SKEW_ANGLE

    @classmethod
    def rectangular(cls, name: str, cols: int = DEFAULT_ROOM_COLS, rows: int = DEFAULT_ROOM_ROWS) -> "RoomDescriptor":
        return cls(id=None, name=name, cols=cols, rows=rows)

    @classmethod
    def from_template(
        cls,
        record: RoomTemplateRecord,
        default_cols: int = DEFAULT_ROOM_COLS,
        default_rows: int = DEFAULT_ROOM_ROWS,
        default_skew_angle: float = DEFAULT_SKEW_ANGLE,
    ) -> "RoomDescriptor":
        """Build a descriptor from a template reply, decoding its tile mask."""
        return cls(
            id=record.id,
            name=record.name,
            cols=record.width or default_cols,
            rows=record.height or default_rows,
            mask=decode_layout(record.default_layout_json, record.name),
            skew_angle=record.skew_angle or default_skew_angle,
        )

    @property
    def mask_rows(self) -> Optional[List[List[int]]]:
        if self.mask is None:
            return None
        return [list(row) for row in self.mask]


def decode_layout(layout_json: Optional[str], room_name: str = "") -> Optional[Tuple[Tuple[int, ...], ...]]:
    """Decode a string-encoded ``{"tiles": [[0|1, ...], ...]}`` layout.

    Invalid layouts are logged and treated as absent, so the room falls
    back to its rectangular bounds.
    """
    if not layout_json:
        return None
    try:
        layout = RoomLayout.model_validate(json.loads(layout_json))
    except ValueError as e:
        # json.JSONDecodeError and pydantic.ValidationError are both ValueErrors
        logger.warning(f"Invalid layout JSON for room {room_name!r}: {e}")
        return None
    return tuple(tuple(row) for row in layout.tiles)


@dataclass
class FurnitureItem:
    """A furniture item in the current room."""
    uid: str
    proto_id: str
    tx: int
    ty: int
    server_id: Optional[Union[int, str]] = None
    color: Optional[Union[int, str]] = None
    sprite_path: Optional[str] = None
    rotation: Optional[float] = None
    scale: Optional[float] = None
    interactable: Optional[bool] = None
    # Drag state; tentative coordinates are never sent to peers
    state: FurnitureState = FurnitureState.SETTLED
    drag_tx: Optional[int] = None
    drag_ty: Optional[int] = None

    @property
    def is_dragging(self) -> bool:
        return self.state == FurnitureState.DRAGGING

    @property
    def position(self) -> Tuple[int, int]:
        """Where the item should be drawn: tentative while dragging."""
        if self.is_dragging and self.drag_tx is not None:
            return (self.drag_tx, self.drag_ty)
        return (self.tx, self.ty)

    @classmethod
    def from_record(cls, record: FurnitureRecord) -> "FurnitureItem":
        return cls(
            uid=record_uid(record),
            proto_id=record.proto_id or record.name or "",
            tx=record.tx,
            ty=record.ty,
            server_id=record.id,
            color=record.color,
            sprite_path=record.sprite_path,
            rotation=record.rotation,
            scale=record.scale,
            interactable=record.interactable,
        )


def server_alias(server_id: Union[int, str]) -> str:
    return f"{SERVER_UID_PREFIX}{server_id}"


def record_uid(record: FurnitureRecord) -> str:
    """Local key of a server record: its uid, else one derived from its durable id."""
    if record.uid:
        return record.uid
    if record.id is not None:
        return server_alias(record.id)
    raise ValueError("furniture record carries neither uid nor id")


@dataclass
class PlayerEntity:
    """
    A player in the room.

    ``tx``/``ty`` are the logical tile and jump to the destination as soon
    as a move is accepted; the visual position interpolates from
    ``start_x``/``start_y`` over ``move_duration``.
    """
    username: str
    tx: int
    ty: int
    is_self: bool = False
    is_moving: bool = False
    start_x: float = 0.0
    start_y: float = 0.0
    move_started_at: float = 0.0
    move_duration: float = MOVEMENT_ANIMATION_DURATION

    def move_progress(self, now: float) -> float:
        if not self.is_moving:
            return 1.0
        if self.move_duration <= 0:
            return 1.0
        return max(0.0, min(1.0, (now - self.move_started_at) / self.move_duration))

    def display_position(self, now: float) -> Tuple[float, float]:
        """Interpolated tile position for drawing."""
        progress = self.move_progress(now)
        if progress >= 1.0:
            return (float(self.tx), float(self.ty))
        return (
            self.start_x + (self.tx - self.start_x) * progress,
            self.start_y + (self.ty - self.start_y) * progress,
        )


@dataclass
class ChatLine:
    """A legacy plain-text chat line."""
    sender: str
    message: str


# =============================================================================
# STORE
# =============================================================================

class RoomStateStore:
    """
    Central room state for the client.

    Owns the furniture and player collections exclusively; callers mutate
    them through the commit methods below. Every method either applies its
    whole change or none of it.
    """

    def __init__(self, event_bus: Optional[EventBus] = None, self_username: str = SELF_USERNAME):
        self.event_bus = event_bus or EventBus()
        self.self_username = self_username

        # Room
        self.room: Optional[RoomDescriptor] = None
        self.occupancy: OccupancyModel = OccupancyModel.empty()
        self.room_templates: List[RoomTemplateSummary] = []

        # Furniture, keyed by uid; aliases map dbid_<id> to a uid
        self._furniture: Dict[str, FurnitureItem] = {}
        self._aliases: Dict[str, str] = {}

        # Players, keyed by username
        self.players: Dict[str, PlayerEntity] = {}

        self.chat_history: List[ChatLine] = []

    # =========================================================================
    # ROOM
    # =========================================================================

    @property
    def room_name(self) -> Optional[str]:
        return self.room.name if self.room else None

    def is_current_room(self, name: Optional[str]) -> bool:
        return self.room is not None and name == self.room.name

    def load_room(self, descriptor: RoomDescriptor) -> None:
        """Replace the current room. Furniture of the previous room is dropped."""
        self.room = descriptor
        self.occupancy = OccupancyModel(descriptor.cols, descriptor.rows, descriptor.mask_rows)
        self.occupancy.rebuild_colliders()
        self._clear_furniture()
        logger.info(f"Loaded room {descriptor.name!r} ({descriptor.cols}x{descriptor.rows})")
        self.event_bus.emit(EventType.ROOM_LOADED, {"room": descriptor.name})

    def redraw(self) -> None:
        """Rebuild wall colliders for the current room and notify renderers."""
        if self.room is None:
            return
        blocked = self.occupancy.rebuild_colliders()
        self.event_bus.emit(EventType.ROOM_REDRAWN, {
            "room": self.room.name,
            "walls": len(blocked),
            "furniture": len(self._furniture),
        })

    def set_room_templates(self, templates: Iterable[RoomTemplateSummary]) -> None:
        self.room_templates = list(templates)
        self.event_bus.emit(EventType.ROOM_TEMPLATES_RECEIVED, {"count": len(self.room_templates)})

    # =========================================================================
    # FURNITURE
    # =========================================================================

    @property
    def furniture(self) -> List[FurnitureItem]:
        return list(self._furniture.values())

    @property
    def furniture_count(self) -> int:
        return len(self._furniture)

    def get_furniture(self, uid: str) -> Optional[FurnitureItem]:
        """Look up an item by uid or by a ``dbid_<id>`` alias."""
        item = self._furniture.get(uid)
        if item is not None:
            return item
        alias_target = self._aliases.get(uid)
        return self._furniture.get(alias_target) if alias_target else None

    def find_furniture(
        self,
        uid: Optional[str] = None,
        server_id: Optional[Union[int, str]] = None,
    ) -> Optional[FurnitureItem]:
        """Match an item by uid first, then by durable server id."""
        if uid:
            item = self.get_furniture(uid)
            if item is not None:
                return item
        if server_id is not None:
            return self.get_furniture(server_alias(server_id))
        return None

    def furniture_at(self, tx: int, ty: int) -> List[FurnitureItem]:
        return [item for item in self._furniture.values() if (item.tx, item.ty) == (tx, ty)]

    def add_furniture(self, item: FurnitureItem) -> bool:
        """Add a locally created item at a committed, occupiable tile."""
        if self.get_furniture(item.uid) is not None:
            logger.warning(f"Furniture {item.uid} already exists")
            return False
        if not self.occupancy.can_occupy(item.tx, item.ty):
            return False
        self._insert(item)
        self.event_bus.emit(EventType.FURNITURE_ADDED, {"uid": item.uid, "tx": item.tx, "ty": item.ty, "local": True})
        return True

    def begin_furniture_drag(self, uid: str) -> Optional[FurnitureItem]:
        item = self.get_furniture(uid)
        if item is None or item.is_dragging:
            return None
        item.state = FurnitureState.DRAGGING
        item.drag_tx, item.drag_ty = item.tx, item.ty
        return item

    def update_furniture_drag(self, uid: str, tx: int, ty: int) -> bool:
        """Move the tentative position of a dragged item."""
        item = self.get_furniture(uid)
        if item is None or not item.is_dragging:
            return False
        item.drag_tx, item.drag_ty = tx, ty
        return True

    def cancel_furniture_drag(self, uid: str) -> Optional[FurnitureItem]:
        """Leave drag state; the item keeps its last committed tile."""
        item = self.get_furniture(uid)
        if item is None or not item.is_dragging:
            return None
        self._settle(item)
        return item

    def commit_furniture_drag(self, uid: str, tx: int, ty: int) -> bool:
        """Settle a dragged item on a new tile if the tile is occupiable."""
        item = self.get_furniture(uid)
        if item is None or not item.is_dragging:
            return False
        if not self.occupancy.can_occupy(tx, ty):
            return False
        item.tx, item.ty = tx, ty
        self._settle(item)
        self.event_bus.emit(EventType.FURNITURE_MOVED, {"uid": item.uid, "tx": tx, "ty": ty, "local": True})
        return True

    def apply_furniture_update(self, record: FurnitureRecord) -> Tuple[FurnitureItem, bool]:
        """
        Reconcile one server-confirmed furniture record.

        An existing item (matched by uid or durable id) is updated in place,
        which absorbs the server's echo of our own moves; an unknown one is
        created. Returns the item and whether it was created.
        """
        item = self.find_furniture(record.uid, record.id)
        if item is not None:
            item.tx, item.ty = record.tx, record.ty
            if record.id is not None and item.server_id is None:
                item.server_id = record.id
                alias = server_alias(record.id)
                if alias != item.uid:
                    self._aliases[alias] = item.uid
            if record.color is not None:
                item.color = record.color
            self._warn_if_outside(item)
            self.event_bus.emit(EventType.FURNITURE_MOVED, {"uid": item.uid, "tx": item.tx, "ty": item.ty, "local": False})
            return item, False

        item = FurnitureItem.from_record(record)
        self._insert(item)
        self._warn_if_outside(item)
        self.event_bus.emit(EventType.FURNITURE_ADDED, {"uid": item.uid, "tx": item.tx, "ty": item.ty, "local": False})
        return item, True

    def replace_furniture(self, records: Iterable[FurnitureRecord]) -> int:
        """Tear down every item and instantiate the given records fresh."""
        fresh: List[FurnitureItem] = []
        for record in records:
            try:
                fresh.append(FurnitureItem.from_record(record))
            except ValueError as e:
                logger.warning(f"Skipping furniture record: {e}")

        self._clear_furniture()
        for item in fresh:
            self._insert(item)
            self._warn_if_outside(item)

        self.event_bus.emit(EventType.FURNITURE_RESYNCED, {"count": len(self._furniture)})
        return len(self._furniture)

    def _insert(self, item: FurnitureItem) -> None:
        self._furniture[item.uid] = item
        if item.server_id is not None:
            alias = server_alias(item.server_id)
            if alias != item.uid:
                self._aliases[alias] = item.uid

    def _clear_furniture(self) -> None:
        self._furniture.clear()
        self._aliases.clear()

    @staticmethod
    def _settle(item: FurnitureItem) -> None:
        item.state = FurnitureState.SETTLED
        item.drag_tx = None
        item.drag_ty = None

    def _warn_if_outside(self, item: FurnitureItem) -> None:
        if self.room is not None and not self.occupancy.inside_room(item.tx, item.ty):
            logger.warning(f"Server placed furniture {item.uid} outside room at ({item.tx}, {item.ty})")

    # =========================================================================
    # PLAYERS
    # =========================================================================

    @property
    def self_player(self) -> Optional[PlayerEntity]:
        return self.players.get(self.self_username)

    def spawn_player(self, username: str, tx: int, ty: int) -> PlayerEntity:
        """Add a player; an already present player is returned unchanged."""
        existing = self.players.get(username)
        if existing is not None:
            return existing

        player = PlayerEntity(
            username=username,
            tx=tx,
            ty=ty,
            is_self=username == self.self_username,
            start_x=float(tx),
            start_y=float(ty),
        )
        self.players[username] = player
        self.event_bus.emit(EventType.PLAYER_SPAWNED, {"username": username, "tx": tx, "ty": ty})
        return player

    def commit_player_move(
        self,
        username: str,
        tx: int,
        ty: int,
        now: float,
        duration: float = MOVEMENT_ANIMATION_DURATION,
    ) -> bool:
        """
        Start a walk to an occupiable tile, superseding any walk in progress.

        The logical tile changes immediately; the visual walk restarts from
        wherever the previous animation had got to.
        """
        player = self.players.get(username)
        if player is None:
            return False
        if not self.occupancy.can_occupy(tx, ty):
            return False

        start_x, start_y = player.display_position(now)
        origin = (player.tx, player.ty)

        player.start_x, player.start_y = start_x, start_y
        player.tx, player.ty = tx, ty
        player.move_started_at = now
        player.move_duration = duration
        player.is_moving = True

        self.event_bus.emit(EventType.PLAYER_MOVED, {
            "username": username,
            "from": origin,
            "tx": tx,
            "ty": ty,
        })
        return True

    def advance_players(self, now: float) -> List[str]:
        """Finish walks whose animation has completed; returns their usernames."""
        finished = []
        for player in self.players.values():
            if player.is_moving and player.move_progress(now) >= 1.0:
                player.is_moving = False
                player.start_x, player.start_y = float(player.tx), float(player.ty)
                finished.append(player.username)
        return finished

    def remove_player(self, username: str) -> bool:
        if self.players.pop(username, None) is None:
            return False
        self.event_bus.emit(EventType.PLAYER_REMOVED, {"username": username})
        return True

    # =========================================================================
    # CHAT
    # =========================================================================

    def record_chat(self, line: ChatLine) -> None:
        self.chat_history.append(line)

        # Keep chat history manageable
        if len(self.chat_history) > CHAT_HISTORY_LIMIT:
            self.chat_history.pop(0)

        self.event_bus.emit(EventType.CHAT_MESSAGE_RECEIVED, {"sender": line.sender, "message": line.message})

    def clear(self) -> None:
        """Clear all room state (for disconnect/reset)."""
        self.room = None
        self.occupancy = OccupancyModel.empty()
        self.room_templates = []
        self._clear_furniture()
        self.players.clear()
        self.chat_history.clear()
