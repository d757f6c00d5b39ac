"""Exceptions raised by hub operations.

Every handler signals a rejected request by raising one of these. The hub
dispatcher turns them into an ``error`` event addressed to the sender only, so
a bad request never changes room state or reaches other members.
"""
from __future__ import annotations


class HubError(Exception):
    """Base class for a request the hub refuses to apply."""

    code = "rejected"


class ValidationError(HubError):
    """Malformed payload or a value outside what the hub accepts."""

    code = "invalid_payload"


class UnknownEvent(HubError):
    code = "unknown_event"


class InvalidState(HubError):
    """The session is in the wrong lifecycle state for the request."""

    code = "invalid_state"


class WrongRoomKind(HubError):
    """Chat operation in a live room or the other way round."""

    code = "wrong_room_kind"


class NotFound(HubError):
    code = "not_found"


class PermissionDenied(HubError):
    """The session does not own the record it tried to change."""

    code = "forbidden"


__all__ = [
    "HubError",
    "ValidationError",
    "UnknownEvent",
    "InvalidState",
    "WrongRoomKind",
    "NotFound",
    "PermissionDenied",
]
