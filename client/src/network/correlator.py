"""
Request/response correlation for the room socket.

Queries go out with a ``reqId``; the reply carrying the same ``reqId``
resolves the caller's future. Replies may arrive in any order.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from common.src.constants import DEFAULT_REQUEST_TIMEOUT
from common.src.protocol import OutboundMessage

from ..core.ids import IdGenerator
from ..logging_config import get_logger
from .errors import RequestTimeoutError, TransportUnavailableError

logger = get_logger(__name__)


@dataclass
class PendingRequest:
    """A correlated call awaiting its reply."""
    req_id: str
    message_type: Optional[str]
    created_at: float
    timeout: float
    future: asyncio.Future
    timeout_handle: Optional[asyncio.TimerHandle] = None


class RequestCorrelator:
    """Pairs outbound queries with their replies by ``reqId``."""

    def __init__(
        self,
        send: Callable[[Dict[str, Any]], Awaitable[bool]],
        ids: Optional[IdGenerator] = None,
        default_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        self._send = send
        self.ids = ids or IdGenerator(prefix="r")
        self.default_timeout = default_timeout
        self.pending_requests: Dict[str, PendingRequest] = {}

    @property
    def pending_count(self) -> int:
        return len(self.pending_requests)

    def is_pending(self, req_id: str) -> bool:
        return req_id in self.pending_requests

    async def call(self, message: Union[OutboundMessage, Dict[str, Any]], timeout: Optional[float] = None) -> Any:
        """
        Send a query and wait for the ``data`` of its reply.

        Args:
            message: Query model or plain dict; ``reqId`` is added here
            timeout: Deadline in seconds, defaults to ``default_timeout``

        Raises:
            TransportUnavailableError: if the socket is not open
            RequestTimeoutError: if no reply arrives in time
            ConnectionClosedError: if the socket closes first
        """
        payload = message.to_wire() if isinstance(message, OutboundMessage) else dict(message)
        req_id = self.ids.next_id()
        payload["reqId"] = req_id
        timeout = self.default_timeout if timeout is None else timeout

        loop = asyncio.get_running_loop()
        request = PendingRequest(
            req_id=req_id,
            message_type=payload.get("type"),
            created_at=time.monotonic(),
            timeout=timeout,
            future=loop.create_future(),
        )
        request.timeout_handle = loop.call_later(timeout, self._expire, req_id)
        self.pending_requests[req_id] = request

        try:
            if not await self._send(payload):
                raise TransportUnavailableError(f"Cannot send {request.message_type}: not connected")
            return await request.future
        finally:
            self._discard(req_id)

    def resolve(self, req_id: str, data: Any) -> bool:
        """Complete a pending call. Unknown or late ids are ignored."""
        request = self.pending_requests.pop(req_id, None)
        if request is None:
            logger.debug(f"Ignoring reply for unknown or expired reqId {req_id}")
            return False

        if request.timeout_handle:
            request.timeout_handle.cancel()
        if not request.future.done():
            request.future.set_result(data)
        return True

    def reject_all(self, exc_factory: Callable[[str], BaseException]) -> int:
        """Fail every pending call, e.g. when the socket closes."""
        requests = list(self.pending_requests.values())
        self.pending_requests.clear()

        for request in requests:
            if request.timeout_handle:
                request.timeout_handle.cancel()
            if not request.future.done():
                request.future.set_exception(exc_factory(request.req_id))

        if requests:
            logger.info(f"Rejected {len(requests)} pending request(s)")
        return len(requests)

    def _expire(self, req_id: str) -> None:
        request = self.pending_requests.pop(req_id, None)
        if request is None:
            return
        logger.warning(f"Request timed out: {request.message_type} (reqId={req_id}) after {request.timeout}s")
        if not request.future.done():
            request.future.set_exception(
                RequestTimeoutError(req_id, request.message_type, request.timeout)
            )

    def _discard(self, req_id: str) -> None:
        request = self.pending_requests.pop(req_id, None)
        if request is not None and request.timeout_handle:
            request.timeout_handle.cancel()
