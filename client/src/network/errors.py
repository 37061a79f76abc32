"""
Exceptions raised by the network layer.
"""

from typing import Optional


class RoomClientError(Exception):
    """Base exception for room client network errors."""
    pass


class TransportUnavailableError(RoomClientError):
    """A correlated call was attempted while the socket is not open."""
    pass


class RequestTimeoutError(RoomClientError):
    """No reply arrived for a correlated call within its deadline."""

    def __init__(self, req_id: str, message_type: Optional[str], timeout: float):
        self.req_id = req_id
        self.message_type = message_type
        self.timeout = timeout
        super().__init__(f"No reply to {message_type} (reqId={req_id}) within {timeout}s")


class ConnectionClosedError(RoomClientError):
    """The socket closed while a correlated call was still pending."""

    def __init__(self, req_id: Optional[str] = None):
        self.req_id = req_id
        message = "Connection closed"
        if req_id:
            message += f" before reply to reqId={req_id}"
        super().__init__(message)
