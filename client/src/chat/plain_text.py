"""
Inbound legacy plain-text lines.

Frames that are not JSON objects are either server status lines (starting
with a status glyph) or room chat in ``"username: message"`` form.
"""

from dataclasses import dataclass
from typing import Optional, Union

from common.src.constants import STATUS_MARKERS, UNKNOWN_SENDER

from ..game.room_state import ChatLine


@dataclass
class StatusLine:
    """A server status or log line such as ``"✅ Logged in"``."""
    marker: str
    text: str


def classify_plain_text(raw: str) -> Optional[Union[StatusLine, ChatLine]]:
    """Classify a non-JSON frame. Returns None for blank frames."""
    text = raw.strip()
    if not text:
        return None

    for marker in STATUS_MARKERS:
        if text.startswith(marker):
            return StatusLine(marker=marker, text=text)

    sender, sep, message = text.partition(":")
    if not sep:
        return ChatLine(sender=UNKNOWN_SENDER, message=text)
    return ChatLine(sender=sender.strip(), message=message.strip())
