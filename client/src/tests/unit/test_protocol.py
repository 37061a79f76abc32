"""
Unit tests for the shared wire protocol models.
"""

import pytest
from pydantic import ValidationError

from common.src.protocol import (
    CorrelatedReply,
    CreateFurnitureCommand,
    FurnitureUpdatedEvent,
    GetRoomTemplateQuery,
    RoomStateEvent,
    RoomTemplatesEvent,
    UpdateFurnitureCommand,
    furniture_list_adapter,
    is_event_type,
    parse_event,
)


class TestOutboundMessages:
    """Tests for outbound wire shapes."""

    def test_optional_color_is_omitted(self):
        command = CreateFurnitureCommand(room="Lobby", uid="f1", proto_id="chair", tx=2, ty=2)
        assert command.to_wire() == {
            "type": "CREATE_FURNITURE",
            "room": "Lobby",
            "uid": "f1",
            "proto_id": "chair",
            "tx": 2,
            "ty": 2,
        }

    def test_color_is_sent_when_set(self):
        command = CreateFurnitureCommand(room="Lobby", uid="f1", proto_id="chair", tx=2, ty=2, color=0xFF0000)
        assert command.to_wire()["color"] == 0xFF0000

    def test_query_field_names(self):
        assert GetRoomTemplateQuery(templateId=7).to_wire() == {"type": "GET_ROOM_TEMPLATE", "templateId": 7}
        assert UpdateFurnitureCommand(room="Lobby", uid="f1", tx=1, ty=2).to_wire()["type"] == "UPDATE_FURNITURE"


class TestInboundMessages:
    """Tests for inbound validation."""

    def test_events_are_discriminated_by_type(self):
        state = parse_event({"type": "ROOM_STATE", "room": "Lobby", "furniture": []})
        updated = parse_event({"type": "FURNITURE_UPDATED", "room": "Lobby", "furniture": {"uid": "f1", "tx": 1, "ty": 1}})
        templates = parse_event({"type": "ROOM_TEMPLATES", "data": [{"id": 1, "name": "Lobby"}]})

        assert isinstance(state, RoomStateEvent)
        assert isinstance(updated, FurnitureUpdatedEvent)
        assert isinstance(templates, RoomTemplatesEvent)

    def test_missing_required_fields_fail(self):
        with pytest.raises(ValidationError):
            parse_event({"type": "FURNITURE_UPDATED", "room": "Lobby", "furniture": {"uid": "f1"}})

    def test_unknown_event_type_fails(self):
        with pytest.raises(ValidationError):
            parse_event({"type": "TILE_CLICK"})

    def test_extra_fields_are_ignored(self):
        records = furniture_list_adapter.validate_python([{"uid": "f1", "tx": 1, "ty": 2, "owner": "bob"}])
        assert records[0].uid == "f1"

    def test_reply_alias(self):
        reply = CorrelatedReply.model_validate({"reqId": "r1", "data": [1, 2]})
        assert reply.req_id == "r1"
        assert reply.data == [1, 2]
        assert reply.type is None

    @pytest.mark.parametrize("value,expected", [
        ("ROOM_STATE", True),
        ("FURNITURE_UPDATED", True),
        ("TILE_CLICK", False),
        ("NOPE", False),
        (None, False),
    ])
    def test_is_event_type(self, value, expected):
        assert is_event_type(value) is expected
