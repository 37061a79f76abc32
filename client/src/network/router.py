"""
Inbound frame routing.

Every frame the socket delivers is queued and processed in arrival order
by a single worker. Classification:

1. JSON object with ``reqId``  -> correlated reply, handed to the correlator
2. JSON object with ``type``   -> typed broadcast, validated then dispatched
3. anything else               -> legacy plain text (status line or chat)

Malformed JSON is not an error; it is plain text.
"""

import asyncio
import inspect
import json
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union

from pydantic import ValidationError

from common.src.protocol import CorrelatedReply, EVENT_TYPES, MessageType, parse_event

from ..chat.plain_text import StatusLine, classify_plain_text
from ..core.event_bus import EventType
from ..game.room_state import RoomStateStore
from ..logging_config import get_logger
from .correlator import RequestCorrelator

logger = get_logger(__name__)

Frame = Union[str, bytes]


class FrameKind(str, Enum):
    """How an inbound frame was classified."""
    REPLY = "reply"
    EVENT = "event"
    STATUS = "status"
    CHAT = "chat"
    IGNORED = "ignored"


class MessageRouter:
    """Classifies inbound frames and dispatches them to registered handlers."""

    def __init__(self, correlator: RequestCorrelator, store: RoomStateStore):
        self.correlator = correlator
        self.store = store
        self._handlers: Dict[MessageType, Callable] = {}
        self._queue: "asyncio.Queue[Frame]" = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None

    # =========================================================================
    # HANDLER REGISTRATION
    # =========================================================================

    def register_handler(self, msg_type: MessageType, handler: Callable) -> None:
        """Register a handler for a broadcast event type."""
        self._handlers[msg_type] = handler
        logger.debug(f"Registered handler for {msg_type.value}")

    def unregister_handler(self, msg_type: MessageType) -> None:
        self._handlers.pop(msg_type, None)

    # =========================================================================
    # QUEUE
    # =========================================================================

    def feed(self, frame: Frame) -> None:
        """Enqueue a frame from the transport."""
        self._queue.put_nowait(frame)

    def start(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._worker is None:
            return
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

    async def drain(self) -> None:
        """Wait until every queued frame has been processed."""
        await self._queue.join()

    @property
    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def _run(self) -> None:
        logger.debug("Message router started")
        while True:
            frame = await self._queue.get()
            try:
                await self.route(frame)
            except Exception:
                logger.exception("Error routing inbound frame")
            finally:
                self._queue.task_done()

    # =========================================================================
    # CLASSIFICATION
    # =========================================================================

    async def route(self, frame: Frame) -> FrameKind:
        """Classify and dispatch one frame."""
        if isinstance(frame, (bytes, bytearray)):
            frame = frame.decode("utf-8", errors="replace")

        if not frame.strip():
            return FrameKind.IGNORED

        try:
            message = json.loads(frame)
        except (ValueError, RecursionError):
            message = None

        if isinstance(message, dict):
            if "reqId" in message:
                return self._route_reply(message)
            if "type" in message:
                return await self._route_event(message)
            logger.debug("Ignoring JSON frame without reqId or type")
            return FrameKind.IGNORED

        return self._route_plain_text(frame)

    def _route_reply(self, message: Dict[str, Any]) -> FrameKind:
        try:
            reply = CorrelatedReply.model_validate(message)
        except ValidationError as e:
            logger.warning(f"Malformed reply frame: {e}")
            return FrameKind.IGNORED

        self.correlator.resolve(reply.req_id, reply.data)
        return FrameKind.REPLY

    async def _route_event(self, message: Dict[str, Any]) -> FrameKind:
        type_value = message.get("type")
        try:
            msg_type = MessageType(type_value)
        except ValueError:
            logger.warning(f"Unknown message type: {type_value}")
            return FrameKind.IGNORED

        if msg_type not in EVENT_TYPES:
            logger.warning(f"Unexpected inbound message type: {msg_type.value}")
            return FrameKind.IGNORED

        try:
            event = parse_event(message)
        except ValidationError as e:
            logger.warning(f"Dropping malformed {msg_type.value} event: {e}")
            return FrameKind.IGNORED

        handler = self._handlers.get(msg_type)
        if handler is None:
            logger.debug(f"No handler for message type: {msg_type.value}")
            return FrameKind.IGNORED

        try:
            if inspect.iscoroutinefunction(handler):
                await handler(event)
            else:
                handler(event)
        except Exception:
            logger.exception(f"Error in message handler for {msg_type.value}")
        return FrameKind.EVENT

    def _route_plain_text(self, frame: str) -> FrameKind:
        line = classify_plain_text(frame)
        if line is None:
            return FrameKind.IGNORED

        if isinstance(line, StatusLine):
            logger.info(line.text)
            self.store.event_bus.emit(EventType.STATUS_RECEIVED, {"marker": line.marker, "text": line.text})
            return FrameKind.STATUS

        logger.info(f"{line.sender}: {line.message}")
        self.store.record_chat(line)
        return FrameKind.CHAT
