from __future__ import annotations

from enum import Enum


class RoomKind(str, Enum):
    """The two room flavours. Fixed for the lifetime of a room."""

    CHAT = "chat"
    LIVE = "live"


DEFAULT_ROOM_ID = "general"
DEFAULT_ROOM_NAME = "General"

# Chat rooms keep only the most recent messages.
MESSAGE_HISTORY_LIMIT = 100

# Upper bound on any user supplied text field (messages, notices, live text).
MAX_TEXT_LENGTH = 20_000

SECTION_ID_PREFIX = "user-"


__all__ = [
    "RoomKind",
    "DEFAULT_ROOM_ID",
    "DEFAULT_ROOM_NAME",
    "MESSAGE_HISTORY_LIMIT",
    "MAX_TEXT_LENGTH",
    "SECTION_ID_PREFIX",
]
