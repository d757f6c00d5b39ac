"""Inbound event vocabulary.

A frame is ``{"type": <event>, "data": {...}}``; payload fields may also sit
next to ``type`` when ``data`` is absent. Every event has one request schema
and one handler. Only ``join`` is accepted before the session has joined.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, Tuple, Type

from pydantic import ValidationError as PydanticValidationError

from . import chat, lifecycle, live
from .errors import UnknownEvent, ValidationError
from .schemas import (
    ChangeRoomRequest,
    CreateRoomRequest,
    DeleteAnswerRequest,
    DeleteMessageRequest,
    DeleteSectionRequest,
    EmptyRequest,
    JoinRequest,
    MentionUserRequest,
    ReorderSectionsRequest,
    Request,
    TextRequest,
    UpdateAnswerRequest,
    UpdateProfileRequest,
)

if TYPE_CHECKING:
    from .hub import ChatHub
    from .session import Session

Handler = Callable[["ChatHub", "Session", Any], None]

EVENTS: Dict[str, Tuple[Type[Request], Handler]] = {
    # session / room control
    "join": (JoinRequest, lifecycle.handle_join),
    "createRoom": (CreateRoomRequest, lifecycle.handle_create_room),
    "changeRoom": (ChangeRoomRequest, lifecycle.handle_change_room),
    "updateProfile": (UpdateProfileRequest, lifecycle.handle_update_profile),
    "getRoomData": (EmptyRequest, lifecycle.handle_get_room_data),
    # chat
    "message": (TextRequest, chat.handle_message),
    "deleteMessage": (DeleteMessageRequest, chat.handle_delete_message),
    "clearAllMessages": (EmptyRequest, chat.handle_clear_all_messages),
    "setNotice": (TextRequest, chat.handle_set_notice),
    "updateNotice": (TextRequest, chat.handle_update_notice),
    "deleteNotice": (EmptyRequest, chat.handle_delete_notice),
    "addAnswer": (TextRequest, chat.handle_add_answer),
    "updateAnswer": (UpdateAnswerRequest, chat.handle_update_answer),
    "deleteAnswer": (DeleteAnswerRequest, chat.handle_delete_answer),
    "typingStart": (EmptyRequest, chat.handle_typing_start),
    "typingStop": (EmptyRequest, chat.handle_typing_stop),
    # live collaboration
    "updateLiveContent": (TextRequest, live.handle_update_live_content),
    "clearLiveContent": (EmptyRequest, live.handle_clear_live_content),
    "deleteSection": (DeleteSectionRequest, live.handle_delete_section),
    "reorderSections": (ReorderSectionsRequest, live.handle_reorder_sections),
    "mentionUser": (MentionUserRequest, live.handle_mention_user),
    "mentionAll": (EmptyRequest, live.handle_mention_all),
}

HANDLERS: Dict[str, Handler] = {name: handler for name, (_, handler) in EVENTS.items()}

PRE_JOIN_EVENTS = frozenset({"join"})


def frame_event(frame: Any) -> str:
    """Return the event name of a raw frame.

    Raises ``UnknownEvent`` or ``ValidationError``.
    """
    if not isinstance(frame, dict):
        raise ValidationError("frame must be a JSON object")
    event = frame.get("type")
    if not isinstance(event, str) or not event:
        raise ValidationError("frame needs a string 'type'")
    if event not in EVENTS:
        raise UnknownEvent(f"unknown event {event!r}")
    return event


def parse_request(event: str, frame: Dict[str, Any]) -> Request:
    """Validate the payload of a frame already named by :func:`frame_event`."""
    data = frame.get("data")
    if data is None:
        data = {key: value for key, value in frame.items() if key != "type"}
    if not isinstance(data, dict):
        raise ValidationError("'data' must be an object")

    schema, _ = EVENTS[event]
    try:
        return schema.model_validate(data)
    except PydanticValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'data'}: {err['msg']}" for err in exc.errors()
        )
        raise ValidationError(problems) from exc


__all__ = ["EVENTS", "HANDLERS", "PRE_JOIN_EVENTS", "frame_event", "parse_request"]
