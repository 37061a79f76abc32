"""
Shared fixtures for room client tests.

The websocket is replaced by an in-memory fake that implements the small
part of the websockets client surface the client uses (``send``, async
iteration, ``close``) and can answer correlated queries from a script.
"""

import asyncio
import json
from typing import Any, Callable, Dict, List, Optional, Union
from unittest.mock import MagicMock

import pytest
import pytest_asyncio

from client.src.config import ClientConfig, NetworkConfig, RoomConfig
from client.src.core.event_bus import EventBus, EventType
from client.src.game.isometric import CoordinateMapper, IsoProjection
from client.src.game.room_state import RoomDescriptor, RoomStateStore
from client.src.network.message_sender import MessageSender
from client.src.session import ClientSession

_CLOSE = object()


class FakeWebSocket:
    """In-memory stand-in for a websockets client connection."""

    def __init__(self, replies: Optional[Dict[str, Union[Any, Callable[[dict], Any]]]] = None):
        self.sent: List[str] = []
        self.replies: Dict[str, Any] = dict(replies or {})
        self.closed = False
        self._incoming: asyncio.Queue = asyncio.Queue()

    async def send(self, message: str) -> None:
        self.sent.append(message)
        try:
            payload = json.loads(message)
        except ValueError:
            return
        if isinstance(payload, dict) and "reqId" in payload and payload.get("type") in self.replies:
            data = self.replies[payload["type"]]
            if callable(data):
                data = data(payload)
            self.push_json({"reqId": payload["reqId"], "type": payload["type"], "data": data})

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._incoming.put_nowait(_CLOSE)

    def close_from_server(self) -> None:
        """End the inbound stream as if the server closed the socket."""
        self.closed = True
        self._incoming.put_nowait(_CLOSE)

    def push(self, frame: str) -> None:
        self._incoming.put_nowait(frame)

    def push_json(self, message: Dict[str, Any]) -> None:
        self.push(json.dumps(message))

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        frame = await self._incoming.get()
        if frame is _CLOSE:
            raise StopAsyncIteration
        return frame

    # Inspection helpers

    @property
    def sent_json(self) -> List[Dict[str, Any]]:
        messages = []
        for frame in self.sent:
            try:
                messages.append(json.loads(frame))
            except ValueError:
                continue
        return messages

    @property
    def sent_text(self) -> List[str]:
        return [frame for frame in self.sent if not frame.startswith("{")]

    def sent_of_type(self, msg_type: str) -> List[Dict[str, Any]]:
        return [message for message in self.sent_json if message.get("type") == msg_type]


async def _settle(rounds: int = 20) -> None:
    """Let pending tasks run until the event loop is idle."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class EventRecorder:
    """Collects EventBus events of the given types."""

    def __init__(self, event_bus: EventBus, *event_types: EventType):
        self.events = []
        for event_type in event_types:
            event_bus.subscribe(event_type, self.events.append)

    def of_type(self, event_type: EventType):
        return [event for event in self.events if event.type == event_type]


@pytest.fixture
def fake_ws():
    """A fake socket that only answers the template list query."""
    return FakeWebSocket(replies={"GET_ROOM_TEMPLATES": []})


@pytest.fixture
def connector(fake_ws):
    """Connector returning the fake socket, as websockets.connect would."""
    async def connect(url):
        return fake_ws
    return connect


@pytest.fixture
def client_config():
    """Default configuration without the initial template load."""
    return ClientConfig(
        network=NetworkConfig(request_timeout=0.5),
        room=RoomConfig(initial_template_index=None),
    )


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def store(event_bus):
    """A state store with the default 10x10 Lobby loaded and drawn."""
    store = RoomStateStore(event_bus)
    store.load_room(RoomDescriptor.rectangular("Lobby", 10, 10))
    store.redraw()
    return store


@pytest.fixture
def mapper():
    return CoordinateMapper(IsoProjection(64, 32, 368, 50))


@pytest.fixture
def sender():
    """A MessageSender double whose async methods are AsyncMocks."""
    return MagicMock(spec=MessageSender)


@pytest_asyncio.fixture
async def session(client_config, connector):
    """A client session wired to the fake socket; stopped after the test."""
    client = ClientSession(config=client_config, connector=connector)
    yield client
    await client.stop()


@pytest.fixture
def settle():
    """Awaitable that lets queued frames and tasks run."""
    return _settle


@pytest.fixture
def record_events(event_bus):
    """Factory: record_events(EventType.X, ...) -> EventRecorder on the store's bus."""
    def factory(*event_types: EventType, bus: Optional[EventBus] = None) -> EventRecorder:
        return EventRecorder(bus or event_bus, *event_types)
    return factory
