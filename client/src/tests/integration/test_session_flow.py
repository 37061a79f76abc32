"""
Integration tests for the client session.

Runs the real connection, router, correlator and store against an
in-memory socket whose replies are scripted per query type.
"""

import asyncio
import logging

import pytest

from client.src.config import ClientConfig, NetworkConfig, RoomConfig
from client.src.main import run
from client.src.network.errors import ConnectionClosedError
from client.src.session import ClientSession

STUDIO = {"id": 7, "name": "Studio", "width": 5, "height": 5, "default_layout_json": None}


@pytest.fixture
def studio_replies(fake_ws):
    fake_ws.replies.update({
        "GET_ROOM_TEMPLATES": [{"id": 7, "name": "Studio"}],
        "GET_ROOM_TEMPLATE": STUDIO,
        "GET_ROOM_FURNITURE": [],
    })
    return fake_ws


class TestStartup:
    """Tests for the connect / join / load flow."""

    @pytest.mark.asyncio
    async def test_start_joins_default_room(self, session, fake_ws):
        assert await session.start()

        assert fake_ws.sent_text == ["/join Lobby"]
        assert fake_ws.sent_of_type("SUBSCRIBE_ROOM") == [{"type": "SUBSCRIBE_ROOM", "room": "Lobby"}]
        assert session.store.room_name == "Lobby"
        assert session.store.occupancy.is_blocked(0, 0)
        assert session.store.self_player.tx == 3
        assert session.store.self_player.ty == 7

    @pytest.mark.asyncio
    async def test_start_loads_initial_template(self, connector, studio_replies):
        session = ClientSession(
            config=ClientConfig(network=NetworkConfig(request_timeout=0.5), room=RoomConfig(initial_template_index=0)),
            connector=connector,
        )
        try:
            assert await session.start()
        finally:
            await session.stop()

        room = session.store.room
        assert (room.id, room.name, room.cols, room.rows) == (7, "Studio", 5, 5)
        assert [t.name for t in session.store.room_templates] == ["Studio"]
        assert studio_replies.sent_of_type("GET_ROOM_TEMPLATE")[0]["templateId"] == 7
        assert studio_replies.sent_of_type("GET_ROOM_FURNITURE")[0]["roomId"] == 7
        assert studio_replies.sent_of_type("SUBSCRIBE_ROOM")[-1]["room"] == "Studio"

    @pytest.mark.asyncio
    async def test_start_without_server(self, client_config):
        async def refuse(url):
            raise ConnectionRefusedError("refused")

        session = ClientSession(config=client_config, connector=refuse)

        assert not await session.start()
        assert session.store.room is None
        await session.stop()

    @pytest.mark.asyncio
    async def test_template_fetch_timeout_is_logged(self, session, fake_ws, caplog):
        fake_ws.replies.pop("GET_ROOM_TEMPLATES")
        session.correlator.default_timeout = 0.05
        await session.start()

        assert await session.fetch_room_templates() == []
        assert "Failed to load room templates" in caplog.text
        assert session.correlator.pending_count == 0


class TestRoomTemplates:
    """Tests for loading templates into the session."""

    @pytest.mark.asyncio
    async def test_create_then_echo_leaves_one_item(self, session, studio_replies, settle):
        """Creating a chair and receiving its broadcast echo keeps exactly one chair."""
        await session.start()
        assert await session.load_room_template(7)
        assert session.store.furniture_count == 0

        session.furniture.start_placement("chair", *session.mapper.tile_to_screen(2, 2))
        item = await session.furniture.finish_placement()
        assert item is not None

        created = studio_replies.sent_of_type("CREATE_FURNITURE")
        assert created == [{"type": "CREATE_FURNITURE", "room": "Studio", "uid": item.uid, "proto_id": "chair", "tx": 2, "ty": 2}]

        studio_replies.push_json({
            "type": "FURNITURE_UPDATED",
            "room": "Studio",
            "furniture": {"uid": item.uid, "id": 99, "proto_id": "chair", "tx": 2, "ty": 2},
        })
        await settle()
        await session.router.drain()

        assert session.store.furniture_count == 1
        chair = session.store.furniture[0]
        assert (chair.tx, chair.ty) == (2, 2)
        assert chair.server_id == 99

    @pytest.mark.asyncio
    async def test_walls_block_while_furniture_is_loading(self, session, fake_ws, settle):
        fake_ws.replies["GET_ROOM_TEMPLATE"] = STUDIO
        await session.start()

        loading = asyncio.create_task(session.load_room_template(7))
        await settle()
        assert session.store.room_name == "Studio"
        assert session.correlator.pending_count == 1

        assert not await session.players.click_tile(*session.mapper.tile_to_screen(0, 0))
        session.furniture.start_placement("chair", *session.mapper.tile_to_screen(4, 2))
        assert await session.furniture.finish_placement() is None
        assert fake_ws.sent_of_type("TILE_CLICK") == []
        assert fake_ws.sent_of_type("CREATE_FURNITURE") == []

        req_id = fake_ws.sent_of_type("GET_ROOM_FURNITURE")[0]["reqId"]
        fake_ws.push_json({"reqId": req_id, "type": "GET_ROOM_FURNITURE", "data": []})
        assert await asyncio.wait_for(loading, timeout=1.0)

    @pytest.mark.asyncio
    async def test_template_layout_and_furniture(self, session, fake_ws):
        fake_ws.replies.update({
            "GET_ROOM_TEMPLATE": {
                "id": 3,
                "name": "Gallery",
                "width": 4,
                "height": 4,
                "default_layout_json": '{"tiles": [[1,1,1,1],[1,1,1,1],[1,1,0,1],[1,1,1,1]]}',
            },
            "GET_ROOM_FURNITURE": [{"id": 11, "name": "statue", "tx": 1, "ty": 1}],
        })
        await session.start()

        assert await session.load_room_template(3)

        store = session.store
        assert store.room_name == "Gallery"
        assert not store.occupancy.inside_room(2, 2)
        assert store.get_furniture("dbid_11").proto_id == "statue"
        assert session.mapper.projection.origin_x == 368

    @pytest.mark.asyncio
    async def test_invalid_layout_uses_rectangle(self, session, fake_ws, caplog):
        fake_ws.replies.update({
            "GET_ROOM_TEMPLATE": {"id": 4, "name": "Broken", "width": 6, "height": 6, "default_layout_json": "{oops"},
            "GET_ROOM_FURNITURE": [],
        })
        await session.start()

        assert await session.load_room_template(4)

        assert session.store.room.mask is None
        assert session.store.occupancy.inside_room(5, 5)
        assert "Invalid layout JSON" in caplog.text

    @pytest.mark.asyncio
    async def test_missing_template_is_logged(self, session, fake_ws, caplog):
        fake_ws.replies["GET_ROOM_TEMPLATE"] = None
        await session.start()

        assert not await session.load_room_template(99)

        assert session.store.room_name == "Lobby"
        assert "Failed to load room template 99" in caplog.text


class TestBroadcasts:
    """Tests for broadcasts arriving over the socket."""

    @pytest.mark.asyncio
    async def test_room_state_resync(self, session, fake_ws, settle):
        await session.start()

        fake_ws.push_json({
            "type": "ROOM_STATE",
            "room": "Lobby",
            "furniture": [{"uid": "a", "proto_id": "lamp", "tx": 2, "ty": 2}, {"uid": "b", "proto_id": "rug", "tx": 3, "ty": 3}],
        })
        fake_ws.push("alice: hello")
        fake_ws.push_json({"type": "ROOM_STATE", "room": "Elsewhere", "furniture": []})
        await settle()
        await session.router.drain()

        assert sorted(item.uid for item in session.store.furniture) == ["a", "b"]
        assert session.store.chat_history[-1].sender == "alice"

    @pytest.mark.asyncio
    async def test_drag_and_drop_sends_update(self, session, fake_ws, settle):
        await session.start()
        fake_ws.push_json({"type": "ROOM_FURNITURE", "data": [{"uid": "c1", "proto_id": "chair", "tx": 4, "ty": 4}]})
        await settle()
        await session.router.drain()

        assert session.furniture.begin_drag("c1")
        session.furniture.drag_to(*session.mapper.tile_to_screen(6, 5))
        assert await session.furniture.drop()

        assert fake_ws.sent_of_type("UPDATE_FURNITURE") == [
            {"type": "UPDATE_FURNITURE", "room": "Lobby", "uid": "c1", "tx": 6, "ty": 5}
        ]

    @pytest.mark.asyncio
    async def test_tile_click_sends_only_accepted_moves(self, session, fake_ws):
        await session.start()

        assert await session.players.click_tile(*session.mapper.tile_to_screen(5, 5))
        assert not await session.players.click_tile(*session.mapper.tile_to_screen(9, 5))

        assert fake_ws.sent_of_type("TILE_CLICK") == [{"type": "TILE_CLICK", "room": "Lobby", "tx": 5, "ty": 5}]


class TestDisconnect:
    """Tests for socket closure."""

    @pytest.mark.asyncio
    async def test_close_rejects_pending_calls(self, session, fake_ws, settle):
        await session.start()
        pending = asyncio.create_task(session.sender.get_room_template(12))
        await settle()
        assert session.correlator.pending_count == 1

        fake_ws.close_from_server()

        with pytest.raises(ConnectionClosedError):
            await asyncio.wait_for(pending, timeout=1.0)
        assert session.correlator.pending_count == 0

    @pytest.mark.asyncio
    async def test_sends_after_close_are_dropped(self, session, fake_ws, settle):
        await session.start()
        fake_ws.close_from_server()
        await settle()
        sent_before = len(fake_ws.sent)

        assert not await session.sender.subscribe_room("Lobby")
        assert len(fake_ws.sent) == sent_before


class TestHeadlessRun:
    """Tests for the headless entry point."""

    @pytest.mark.asyncio
    async def test_run_logs_chat_until_closed(self, session, fake_ws, settle, caplog):
        caplog.set_level(logging.INFO)
        task = asyncio.create_task(run(session))
        await settle()

        fake_ws.push("alice: hi there")
        fake_ws.push("✅ Registered")
        await settle()
        await session.router.drain()
        fake_ws.close_from_server()

        await asyncio.wait_for(task, timeout=1.0)
        assert caplog.text.count("alice: hi there") == 1
        assert caplog.text.count("✅ Registered") == 1
        assert not session.connection.is_connected

    @pytest.mark.asyncio
    async def test_run_without_server(self, client_config, caplog):
        async def refuse(url):
            raise ConnectionRefusedError("refused")

        await run(ClientSession(config=client_config, connector=refuse))

        assert "Could not connect" in caplog.text
