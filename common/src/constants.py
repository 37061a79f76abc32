"""
Protocol and room constants.
This file centralizes the magic numbers shared by the client core.
"""

# Projection Constants
DEFAULT_TILE_WIDTH = 64  # Isometric tile width in pixels
DEFAULT_TILE_HEIGHT = 32  # Isometric tile height in pixels
DEFAULT_ORIGIN_Y = 50  # Vertical offset of tile (0, 0) on screen

# Room Constants
DEFAULT_ROOM_NAME = "Lobby"
DEFAULT_ROOM_COLS = 10
DEFAULT_ROOM_ROWS = 10
DEFAULT_SKEW_ANGLE = 30

# Timing Constants
DEFAULT_REQUEST_TIMEOUT = 5.0  # Seconds before a correlated call is rejected
MOVEMENT_ANIMATION_DURATION = 0.4  # Seconds for a player walk tween

# Player Constants
SELF_USERNAME = "You"
DEFAULT_SPAWN = (3, 7)

# Legacy plain-text sub-protocol
STATUS_MARKERS = ("❌", "✅", "⚠️")  # Leading glyphs of server status lines
UNKNOWN_SENDER = "Someone"  # Sender for chat lines without a "name:" prefix
CHAT_HISTORY_LIMIT = 100

# Furniture
SERVER_UID_PREFIX = "dbid_"  # Local key for records that only carry a durable id
