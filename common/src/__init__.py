"""Common protocol definitions shared between client and server."""

from .protocol import (
    # Core message types
    MessageType,
    QUERY_TYPES,
    COMMAND_TYPES,
    EVENT_TYPES,
    # Records
    RoomTemplateSummary,
    RoomTemplateRecord,
    FurnitureRecord,
    RoomLayout,
    # Outbound
    OutboundMessage,
    GetRoomTemplatesQuery,
    GetRoomTemplateQuery,
    GetRoomFurnitureQuery,
    SubscribeRoomCommand,
    TileClickCommand,
    CreateFurnitureCommand,
    UpdateFurnitureCommand,
    # Inbound
    CorrelatedReply,
    RoomTemplatesEvent,
    RoomTemplateEvent,
    RoomFurnitureEvent,
    RoomStateEvent,
    FurnitureUpdatedEvent,
    parse_event,
    is_event_type,
)

from .constants import (
    # Projection
    DEFAULT_TILE_WIDTH,
    DEFAULT_TILE_HEIGHT,
    DEFAULT_ORIGIN_Y,
    # Room
    DEFAULT_ROOM_NAME,
    DEFAULT_ROOM_COLS,
    DEFAULT_ROOM_ROWS,
    DEFAULT_SKEW_ANGLE,
    # Timing
    DEFAULT_REQUEST_TIMEOUT,
    MOVEMENT_ANIMATION_DURATION,
    # Players
    SELF_USERNAME,
    DEFAULT_SPAWN,
    # Plain text
    STATUS_MARKERS,
    UNKNOWN_SENDER,
    CHAT_HISTORY_LIMIT,
    SERVER_UID_PREFIX,
)

__version__ = "1.0"
