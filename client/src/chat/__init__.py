"""
Legacy plain-text sub-protocol for the room client.

Outbound slash commands are built by the command registry; inbound
non-JSON lines are classified as status lines or room chat.
"""

from client.src.chat.command_registry import CommandRegistry, create_default_registry
from client.src.chat.plain_text import StatusLine, classify_plain_text

__all__ = ["CommandRegistry", "create_default_registry", "StatusLine", "classify_plain_text"]
