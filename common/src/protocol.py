"""
Shared protocol definitions.
Using Pydantic models for structure and validation.

Every JSON frame on the room socket is one of:
- an outbound command (client to server), optionally carrying ``reqId``
- a correlated reply (server to client), always carrying ``reqId``
- a typed broadcast event (server to client), keyed by ``type``

Frames that are not JSON belong to the legacy plain-text sub-protocol and
are not modelled here.
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class MessageType(str, Enum):
    # Client to Server - correlated queries
    GET_ROOM_TEMPLATES = "GET_ROOM_TEMPLATES"
    GET_ROOM_TEMPLATE = "GET_ROOM_TEMPLATE"
    GET_ROOM_FURNITURE = "GET_ROOM_FURNITURE"

    # Client to Server - fire-and-forget commands
    SUBSCRIBE_ROOM = "SUBSCRIBE_ROOM"
    TILE_CLICK = "TILE_CLICK"
    CREATE_FURNITURE = "CREATE_FURNITURE"
    UPDATE_FURNITURE = "UPDATE_FURNITURE"

    # Server to Client - broadcast events
    ROOM_TEMPLATES = "ROOM_TEMPLATES"
    ROOM_TEMPLATE = "ROOM_TEMPLATE"
    ROOM_FURNITURE = "ROOM_FURNITURE"
    ROOM_STATE = "ROOM_STATE"
    FURNITURE_UPDATED = "FURNITURE_UPDATED"


QUERY_TYPES = {
    MessageType.GET_ROOM_TEMPLATES,
    MessageType.GET_ROOM_TEMPLATE,
    MessageType.GET_ROOM_FURNITURE,
}

COMMAND_TYPES = {
    MessageType.SUBSCRIBE_ROOM,
    MessageType.TILE_CLICK,
    MessageType.CREATE_FURNITURE,
    MessageType.UPDATE_FURNITURE,
}

EVENT_TYPES = {
    MessageType.ROOM_TEMPLATES,
    MessageType.ROOM_TEMPLATE,
    MessageType.ROOM_FURNITURE,
    MessageType.ROOM_STATE,
    MessageType.FURNITURE_UPDATED,
}


# --- Records carried inside replies and events ---


class RoomTemplateSummary(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Union[int, str]
    name: str


class RoomTemplateRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Union[int, str]
    name: str
    width: Optional[int] = None
    height: Optional[int] = None
    skew_angle: Optional[float] = None
    default_layout_json: Optional[str] = None  # String-encoded {"tiles": [[0|1, ...], ...]}


class FurnitureRecord(BaseModel):
    """A furniture item as the server describes it.

    Locally created items carry a client ``uid``; items loaded from the
    database may only carry a durable ``id`` and a ``name``.
    """

    model_config = ConfigDict(extra="ignore")

    uid: Optional[str] = None
    id: Optional[Union[int, str]] = None
    proto_id: Optional[str] = None
    name: Optional[str] = None
    tx: int
    ty: int
    color: Optional[Union[int, str]] = None
    sprite_path: Optional[str] = None
    rotation: Optional[float] = None
    scale: Optional[float] = None
    interactable: Optional[bool] = None


class RoomLayout(BaseModel):
    model_config = ConfigDict(extra="ignore")

    tiles: List[List[int]]


# --- Outbound command schemas ---


class OutboundMessage(BaseModel):
    """Base for everything the client sends as JSON."""

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class GetRoomTemplatesQuery(OutboundMessage):
    type: Literal["GET_ROOM_TEMPLATES"] = "GET_ROOM_TEMPLATES"


class GetRoomTemplateQuery(OutboundMessage):
    type: Literal["GET_ROOM_TEMPLATE"] = "GET_ROOM_TEMPLATE"
    templateId: Union[int, str]


class GetRoomFurnitureQuery(OutboundMessage):
    type: Literal["GET_ROOM_FURNITURE"] = "GET_ROOM_FURNITURE"
    roomId: Union[int, str]


class SubscribeRoomCommand(OutboundMessage):
    type: Literal["SUBSCRIBE_ROOM"] = "SUBSCRIBE_ROOM"
    room: str


class TileClickCommand(OutboundMessage):
    type: Literal["TILE_CLICK"] = "TILE_CLICK"
    room: str
    tx: int
    ty: int


class CreateFurnitureCommand(OutboundMessage):
    type: Literal["CREATE_FURNITURE"] = "CREATE_FURNITURE"
    room: str
    uid: str
    proto_id: str
    tx: int
    ty: int
    color: Optional[Union[int, str]] = None


class UpdateFurnitureCommand(OutboundMessage):
    type: Literal["UPDATE_FURNITURE"] = "UPDATE_FURNITURE"
    room: str
    uid: str
    tx: int
    ty: int


# --- Inbound schemas ---


class CorrelatedReply(BaseModel):
    """Any frame carrying ``reqId`` is a reply, whatever its ``type``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    req_id: str = Field(alias="reqId")
    type: Optional[str] = None
    data: Any = None


class RoomTemplatesEvent(BaseModel):
    type: Literal["ROOM_TEMPLATES"]
    data: List[RoomTemplateSummary] = Field(default_factory=list)


class RoomTemplateEvent(BaseModel):
    type: Literal["ROOM_TEMPLATE"]
    data: Optional[RoomTemplateRecord] = None


class RoomFurnitureEvent(BaseModel):
    type: Literal["ROOM_FURNITURE"]
    data: List[FurnitureRecord] = Field(default_factory=list)


class RoomStateEvent(BaseModel):
    type: Literal["ROOM_STATE"]
    room: str
    furniture: List[FurnitureRecord] = Field(default_factory=list)


class FurnitureUpdatedEvent(BaseModel):
    type: Literal["FURNITURE_UPDATED"]
    room: str
    furniture: FurnitureRecord


InboundEvent = Annotated[
    Union[
        RoomTemplatesEvent,
        RoomTemplateEvent,
        RoomFurnitureEvent,
        RoomStateEvent,
        FurnitureUpdatedEvent,
    ],
    Field(discriminator="type"),
]

inbound_event_adapter: TypeAdapter = TypeAdapter(InboundEvent)

room_template_list_adapter: TypeAdapter = TypeAdapter(List[RoomTemplateSummary])
furniture_list_adapter: TypeAdapter = TypeAdapter(List[FurnitureRecord])


def parse_event(message: Dict[str, Any]):
    """Validate a decoded broadcast frame into its tagged event model.

    Raises:
        pydantic.ValidationError: if the payload does not match its type.
    """
    return inbound_event_adapter.validate_python(message)


def is_event_type(type_value: Any) -> bool:
    """Check whether a ``type`` field names a known broadcast event."""
    try:
        return MessageType(type_value) in EVENT_TYPES
    except ValueError:
        return False
