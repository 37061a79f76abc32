"""
Client configuration management.

Loads configuration from client_config.yml with environment variable overrides.
Uses Pydantic for validation and type safety.
"""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from common.src.constants import (
    DEFAULT_ORIGIN_Y,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_ROOM_COLS,
    DEFAULT_ROOM_NAME,
    DEFAULT_ROOM_ROWS,
    DEFAULT_SKEW_ANGLE,
    DEFAULT_SPAWN,
    DEFAULT_TILE_HEIGHT,
    DEFAULT_TILE_WIDTH,
    MOVEMENT_ANIMATION_DURATION,
    SELF_USERNAME,
)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "client_config.yml"


class ServerConfig(BaseModel):
    """Server connection settings."""
    host: str = Field(default="localhost", description="Server hostname or IP")
    port: int = Field(default=9001, description="Server WebSocket port")
    websocket_path: str = Field(default="", description="WebSocket endpoint path")

    @property
    def websocket_url(self) -> str:
        return f"ws://{self.host}:{self.port}{self.websocket_path}"


class NetworkConfig(BaseModel):
    """Request/response settings."""
    request_timeout: float = Field(default=DEFAULT_REQUEST_TIMEOUT, gt=0, description="Correlated call deadline in seconds")


class RoomConfig(BaseModel):
    """Room projection and defaults."""
    tile_width: int = Field(default=DEFAULT_TILE_WIDTH, gt=0, description="Isometric tile width in pixels")
    tile_height: int = Field(default=DEFAULT_TILE_HEIGHT, gt=0, description="Isometric tile height in pixels")
    origin_y: float = Field(default=DEFAULT_ORIGIN_Y, description="Screen y of tile (0, 0)")
    viewport_width: int = Field(default=800, gt=0, description="Game viewport width in pixels")
    default_room: str = Field(default=DEFAULT_ROOM_NAME, description="Room joined on connect")
    default_cols: int = Field(default=DEFAULT_ROOM_COLS, gt=0, description="Columns of a room without a template")
    default_rows: int = Field(default=DEFAULT_ROOM_ROWS, gt=0, description="Rows of a room without a template")
    default_skew_angle: float = Field(default=DEFAULT_SKEW_ANGLE, description="Skew angle when a template has none")
    initial_template_index: Optional[int] = Field(default=0, description="Template loaded after connecting (None to skip)")

    @property
    def origin_x(self) -> float:
        return self.viewport_width / 2 - self.tile_width / 2


class PlayerConfig(BaseModel):
    """Local player settings."""
    self_username: str = Field(default=SELF_USERNAME, description="Username of the local player")
    spawn_x: int = Field(default=DEFAULT_SPAWN[0], description="Spawn tile x")
    spawn_y: int = Field(default=DEFAULT_SPAWN[1], description="Spawn tile y")
    move_duration: float = Field(default=MOVEMENT_ANIMATION_DURATION, ge=0, description="Walk animation duration in seconds")


class DebugConfig(BaseModel):
    """Debug and development settings."""
    log_level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    log_file: Optional[str] = Field(default=None, description="Also write logs to this file")
    log_frames: bool = Field(default=False, description="Trace every wire frame sent and received")


class ClientConfig(BaseModel):
    """Complete client configuration."""
    server: ServerConfig = Field(default_factory=ServerConfig)
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    room: RoomConfig = Field(default_factory=RoomConfig)
    player: PlayerConfig = Field(default_factory=PlayerConfig)
    debug: DebugConfig = Field(default_factory=DebugConfig)

    @classmethod
    def from_yaml(cls, path: Optional[Path] = None) -> "ClientConfig":
        """Load configuration from YAML file."""
        path = path or DEFAULT_CONFIG_PATH

        if not path.exists():
            # Return default configuration
            config = cls(**cls._apply_env_overrides({}))
            cls()._save_default(path)
            return config

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        # Apply environment variable overrides
        data = cls._apply_env_overrides(data)

        return cls(**data)

    @staticmethod
    def _apply_env_overrides(data: dict) -> dict:
        """Apply environment variable overrides to config data."""
        env_mappings = {
            "SERVER_HOST": ("server", "host"),
            "SERVER_PORT": ("server", "port"),
            "REQUEST_TIMEOUT": ("network", "request_timeout"),
            "DEFAULT_ROOM": ("room", "default_room"),
            "LOG_LEVEL": ("debug", "log_level"),
            "LOG_FRAMES": ("debug", "log_frames"),
        }

        for env_var, (section, key) in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                if section not in data:
                    data[section] = {}

                # Convert types based on default
                if key == "port":
                    data[section][key] = int(value)
                elif key == "request_timeout":
                    data[section][key] = float(value)
                elif key == "log_frames":
                    data[section][key] = value.lower() in ("1", "true", "yes")
                else:
                    data[section][key] = value

        return data

    def _save_default(self, path: Path) -> None:
        """Save default configuration to file."""
        data = self.model_dump()
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def get_config() -> ClientConfig:
    """Get the process-wide default configuration instance."""
    if not hasattr(get_config, "_instance"):
        get_config._instance = ClientConfig.from_yaml()
    return get_config._instance


def reload_config() -> ClientConfig:
    """Reload configuration from file."""
    get_config._instance = ClientConfig.from_yaml()
    return get_config._instance
