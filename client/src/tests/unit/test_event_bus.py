"""
Unit tests for the internal event bus and id generation.
"""

import pytest

from client.src.core.event_bus import EventBus, EventType
from client.src.core.ids import IdGenerator, to_base36


class TestEventBus:
    """Tests for EventBus."""

    def test_subscribe_and_emit(self):
        bus = EventBus()
        received = []
        bus.subscribe(EventType.ROOM_LOADED, received.append)

        bus.emit(EventType.ROOM_LOADED, {"room": "Lobby"})

        assert received[0].data == {"room": "Lobby"}

    def test_subscribe_once(self):
        bus = EventBus()
        received = []
        bus.subscribe_once(EventType.CONNECTED, received.append)

        bus.emit(EventType.CONNECTED)
        bus.emit(EventType.CONNECTED)

        assert len(received) == 1

    def test_unsubscribe(self):
        bus = EventBus()
        received = []
        bus.subscribe(EventType.CONNECTED, received.append)
        bus.unsubscribe(EventType.CONNECTED, received.append)

        bus.emit(EventType.CONNECTED)

        assert received == []

    def test_failing_handler_does_not_stop_others(self, caplog):
        bus = EventBus()
        received = []

        def broken(event):
            raise RuntimeError("boom")

        bus.subscribe(EventType.FURNITURE_ADDED, broken)
        bus.subscribe(EventType.FURNITURE_ADDED, received.append)

        bus.emit(EventType.FURNITURE_ADDED, {"uid": "f1"})

        assert len(received) == 1
        assert "Error in event handler for FURNITURE_ADDED" in caplog.text

    @pytest.mark.asyncio
    async def test_emit_async_awaits_coroutine_handlers(self):
        bus = EventBus()
        received = []

        async def handler(event):
            received.append(event.type)

        bus.subscribe(EventType.DISCONNECTED, handler)
        await bus.emit_async(EventType.DISCONNECTED)

        assert received == [EventType.DISCONNECTED]

    def test_clear(self):
        bus = EventBus()
        received = []
        bus.subscribe(EventType.CONNECTED, received.append)
        bus.clear()

        bus.emit(EventType.CONNECTED)

        assert received == []


class TestIds:
    """Tests for client-side id generation."""

    @pytest.mark.parametrize("value,expected", [(0, "0"), (35, "z"), (36, "10"), (1000, "rs")])
    def test_base36(self, value, expected):
        assert to_base36(value) == expected

    def test_ids_unique_within_same_millisecond(self):
        ids = IdGenerator(prefix="f", clock=lambda: 1.0)
        assert [ids.next_id() for _ in range(3)] == ["frs_1", "frs_2", "frs_3"]
