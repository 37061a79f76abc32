"""
WebSocket connection management.

Owns the single text-frame socket to the room server: connect, send,
receive loop and close notification. No automatic reconnect.
"""

import asyncio
import json
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional, Union

import websockets
from websockets.exceptions import ConnectionClosed

from common.src.protocol import OutboundMessage

from ..core.event_bus import EventBus, EventType
from ..logging_config import get_logger, log_frame

logger = get_logger(__name__)

Outbound = Union[str, Dict[str, Any], OutboundMessage]


class ConnectionState(Enum):
    """WebSocket connection states."""
    DISCONNECTED = auto()
    CONNECTING = auto()
    CONNECTED = auto()
    ERROR = auto()


class ConnectionSession:
    """Manages the room socket and hands inbound frames to a frame handler."""

    def __init__(
        self,
        url: str,
        event_bus: Optional[EventBus] = None,
        connector: Optional[Callable] = None,
    ):
        self.url = url
        self._event_bus = event_bus or EventBus()
        self._connector = connector or websockets.connect
        self._websocket = None
        self._state = ConnectionState.DISCONNECTED
        self._receive_task: Optional[asyncio.Task] = None
        self._frame_handler: Optional[Callable[[Union[str, bytes]], None]] = None
        self._close_listeners: List[Callable[[], None]] = []

    @property
    def state(self) -> ConnectionState:
        """Get current connection state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """Check if websocket is open."""
        return self._websocket is not None and self._state == ConnectionState.CONNECTED

    def set_frame_handler(self, handler: Callable[[Union[str, bytes]], None]) -> None:
        """Set the callback that receives every inbound frame, in order."""
        self._frame_handler = handler

    def add_close_listener(self, listener: Callable[[], None]) -> None:
        """Register a callback run once the socket has closed."""
        self._close_listeners.append(listener)

    async def connect(self) -> bool:
        """
        Open the socket and start the receive loop.

        Returns:
            True if the socket opened
        """
        if self.is_connected:
            logger.debug("Already connected")
            return True

        self._state = ConnectionState.CONNECTING
        self._event_bus.emit(EventType.CONNECTING)

        try:
            logger.info(f"Connecting to {self.url}")
            self._websocket = await self._connector(self.url)
        except (OSError, websockets.exceptions.WebSocketException, asyncio.TimeoutError) as e:
            logger.error(f"Connection failed: {e}")
            self._websocket = None
            self._state = ConnectionState.ERROR
            self._event_bus.emit(EventType.CONNECTION_ERROR, {"error": str(e)})
            return False

        self._state = ConnectionState.CONNECTED
        logger.info("WebSocket connected")
        self._event_bus.emit(EventType.CONNECTED)
        self._receive_task = asyncio.create_task(self._receive_messages())
        return True

    async def disconnect(self) -> None:
        """Close the socket and stop the receive loop."""
        websocket, self._websocket = self._websocket, None

        if self._receive_task:
            self._receive_task.cancel()
            try:
                await self._receive_task
            except asyncio.CancelledError:
                pass
            self._receive_task = None

        if websocket:
            try:
                await websocket.close()
            except (OSError, websockets.exceptions.WebSocketException) as e:
                logger.warning(f"Error closing websocket: {e}")

        if self._state != ConnectionState.DISCONNECTED:
            self._mark_closed()
        logger.info("Disconnected from server")

    async def send(self, message: Outbound) -> bool:
        """
        Send a frame to the server.

        Dicts and protocol models are sent as JSON text, strings as raw text.
        Nothing is queued: if the socket is not open the message is dropped.

        Returns:
            True if message sent successfully
        """
        if isinstance(message, OutboundMessage):
            text = json.dumps(message.to_wire())
        elif isinstance(message, dict):
            text = json.dumps(message)
        else:
            text = message

        if not self.is_connected:
            logger.warning(f"Cannot send message: not connected (dropped {text})")
            return False

        try:
            log_frame("->", text)
            await self._websocket.send(text)
            return True
        except (OSError, ConnectionClosed) as e:
            logger.error(f"Failed to send message: {e}")
            return False

    async def _receive_messages(self) -> None:
        """Background task to receive frames and pass them on in order."""
        logger.debug("Message receiver started")

        try:
            async for frame in self._websocket:
                log_frame("<-", frame)
                if self._frame_handler is None:
                    logger.debug("No frame handler set, dropping frame")
                    continue
                self._frame_handler(frame)
        except ConnectionClosed as e:
            logger.warning(f"Connection closed by server: {e}")
        except asyncio.CancelledError:
            logger.debug("Message receiver cancelled")
            raise
        except OSError as e:
            logger.error(f"Socket error: {e}")
            self._state = ConnectionState.ERROR
            self._event_bus.emit(EventType.CONNECTION_ERROR, {"error": str(e)})
        finally:
            if self._state != ConnectionState.DISCONNECTED:
                self._websocket = None
                self._mark_closed()

    def _mark_closed(self) -> None:
        self._state = ConnectionState.DISCONNECTED
        logger.info("WebSocket closed")
        self._event_bus.emit(EventType.DISCONNECTED)
        for listener in list(self._close_listeners):
            try:
                listener()
            except Exception:
                logger.exception("Error in close listener")
