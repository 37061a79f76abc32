"""
Unit tests for client configuration loading.
"""

import pytest
import yaml

from client.src.config import ClientConfig

ENV_VARS = ("SERVER_HOST", "SERVER_PORT", "REQUEST_TIMEOUT", "DEFAULT_ROOM", "LOG_LEVEL", "LOG_FRAMES")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestClientConfig:
    """Tests for ClientConfig."""

    def test_defaults(self):
        config = ClientConfig()

        assert config.server.websocket_url == "ws://localhost:9001"
        assert config.network.request_timeout == 5.0
        assert config.room.default_room == "Lobby"
        assert config.room.origin_x == 368
        assert config.room.origin_y == 50
        assert config.player.self_username == "You"
        assert (config.player.spawn_x, config.player.spawn_y) == (3, 7)
        assert config.player.move_duration == 0.4

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "client_config.yml"
        path.write_text(yaml.safe_dump({
            "server": {"host": "rooms.example.com", "port": 9100, "websocket_path": "/ws"},
            "room": {"default_room": "Attic", "initial_template_index": None},
        }))

        config = ClientConfig.from_yaml(path)

        assert config.server.websocket_url == "ws://rooms.example.com:9100/ws"
        assert config.room.default_room == "Attic"
        assert config.room.initial_template_index is None
        assert config.room.tile_width == 64

    def test_missing_file_writes_defaults(self, tmp_path):
        path = tmp_path / "client_config.yml"

        config = ClientConfig.from_yaml(path)

        assert path.exists()
        assert config == ClientConfig()
        assert yaml.safe_load(path.read_text())["server"]["port"] == 9001

    def test_env_overrides(self, tmp_path, monkeypatch):
        path = tmp_path / "client_config.yml"
        path.write_text(yaml.safe_dump({"server": {"host": "from-file"}}))
        monkeypatch.setenv("SERVER_HOST", "from-env")
        monkeypatch.setenv("SERVER_PORT", "9200")
        monkeypatch.setenv("REQUEST_TIMEOUT", "2.5")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        config = ClientConfig.from_yaml(path)

        assert config.server.host == "from-env"
        assert config.server.port == 9200
        assert config.network.request_timeout == 2.5
        assert config.debug.log_level == "DEBUG"

    def test_invalid_values_are_rejected(self, tmp_path):
        path = tmp_path / "client_config.yml"
        path.write_text(yaml.safe_dump({"network": {"request_timeout": 0}}))

        with pytest.raises(ValueError):
            ClientConfig.from_yaml(path)
