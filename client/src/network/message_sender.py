"""
Message sender for client-to-server communication.

Provides typed methods for every query and command the room server
accepts. Queries are correlated and return validated reply data;
commands are fire-and-forget and return whether the frame was sent.
"""

from typing import List, Optional, Union

from common.src.protocol import (
    CreateFurnitureCommand,
    FurnitureRecord,
    GetRoomFurnitureQuery,
    GetRoomTemplateQuery,
    GetRoomTemplatesQuery,
    RoomTemplateRecord,
    RoomTemplateSummary,
    SubscribeRoomCommand,
    TileClickCommand,
    UpdateFurnitureCommand,
    furniture_list_adapter,
    room_template_list_adapter,
)

from ..chat.command_registry import CommandRegistry, create_default_registry
from ..logging_config import get_logger
from .connection import ConnectionSession
from .correlator import RequestCorrelator

logger = get_logger(__name__)


class MessageSender:
    """Sends messages to the server with proper formatting."""

    def __init__(
        self,
        connection: ConnectionSession,
        correlator: RequestCorrelator,
        commands: Optional[CommandRegistry] = None,
    ):
        self.connection = connection
        self.correlator = correlator
        self.commands = commands or create_default_registry()

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def get_room_templates(self, timeout: Optional[float] = None) -> List[RoomTemplateSummary]:
        """Fetch the list of room templates."""
        data = await self.correlator.call(GetRoomTemplatesQuery(), timeout)
        return room_template_list_adapter.validate_python(data or [])

    async def get_room_template(self, template_id: Union[int, str], timeout: Optional[float] = None) -> RoomTemplateRecord:
        """Fetch one room template by id.

        Raises:
            pydantic.ValidationError: if the reply is not a template record
        """
        data = await self.correlator.call(GetRoomTemplateQuery(templateId=template_id), timeout)
        return RoomTemplateRecord.model_validate(data)

    async def get_room_furniture(self, room_id: Union[int, str], timeout: Optional[float] = None) -> List[FurnitureRecord]:
        """Fetch the persisted furniture of a room."""
        data = await self.correlator.call(GetRoomFurnitureQuery(roomId=room_id), timeout)
        return furniture_list_adapter.validate_python(data or [])

    # =========================================================================
    # COMMANDS
    # =========================================================================

    async def subscribe_room(self, room: str) -> bool:
        return await self.connection.send(SubscribeRoomCommand(room=room))

    async def tile_click(self, room: str, tx: int, ty: int) -> bool:
        return await self.connection.send(TileClickCommand(room=room, tx=tx, ty=ty))

    async def create_furniture(
        self,
        room: str,
        uid: str,
        proto_id: str,
        tx: int,
        ty: int,
        color: Optional[Union[int, str]] = None,
    ) -> bool:
        return await self.connection.send(
            CreateFurnitureCommand(room=room, uid=uid, proto_id=proto_id, tx=tx, ty=ty, color=color)
        )

    async def update_furniture(self, room: str, uid: str, tx: int, ty: int) -> bool:
        return await self.connection.send(UpdateFurnitureCommand(room=room, uid=uid, tx=tx, ty=ty))

    # =========================================================================
    # LEGACY PLAIN-TEXT COMMANDS
    # =========================================================================

    async def _send_command(self, name: str, *args: str) -> bool:
        return await self.connection.send(self.commands.build(name, *args))

    async def join(self, room: str) -> bool:
        return await self._send_command("join", room)

    async def login(self, username: str, password: str) -> bool:
        return await self._send_command("login", username, password)

    async def register(self, username: str, email: str, password: str) -> bool:
        return await self._send_command("register", username, email, password)

    async def check_email(self, email: str) -> bool:
        return await self._send_command("check_email", email)

    async def check_username(self, username: str) -> bool:
        return await self._send_command("check_username", username)

    async def send_chat(self, message: str) -> bool:
        """Send free chat text as a raw frame."""
        text = message.strip()
        if not text:
            return False
        return await self.connection.send(text)
