"""Network layer for WebSocket communication."""

from .connection import ConnectionSession, ConnectionState
from .correlator import PendingRequest, RequestCorrelator
from .errors import (
    ConnectionClosedError,
    RequestTimeoutError,
    RoomClientError,
    TransportUnavailableError,
)
from .handlers import RoomEventHandlers, register_all_handlers
from .message_sender import MessageSender
from .router import FrameKind, MessageRouter

__all__ = [
    "ConnectionSession",
    "ConnectionState",
    "PendingRequest",
    "RequestCorrelator",
    "RoomClientError",
    "TransportUnavailableError",
    "RequestTimeoutError",
    "ConnectionClosedError",
    "RoomEventHandlers",
    "register_all_handlers",
    "MessageSender",
    "FrameKind",
    "MessageRouter",
]
