"""Chat rooms: message log, pinned notice and answers to it.

Records remember the session that wrote them; only that session may edit or
delete them. Clearing the whole log is open to any member.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from .constants import RoomKind
from .errors import NotFound, PermissionDenied, ValidationError
from .room import Room
from .schemas import (
    Answer,
    AnswerDeletedEvent,
    DeleteAnswerRequest,
    DeleteMessageRequest,
    EmptyRequest,
    Message,
    MessageDeletedEvent,
    Notice,
    TextRequest,
    TypingEvent,
    TypingStopEvent,
    UpdateAnswerRequest,
)
from .session import Session

if TYPE_CHECKING:
    from .hub import ChatHub


def _chat_room(hub: "ChatHub", session: Session) -> Room:
    return hub.current_room(session).require(RoomKind.CHAT)


def _check_author(record, session: Session, what: str) -> None:
    if record.author_session_id != session.session_id:
        raise PermissionDenied(f"only the author may change this {what}")


def _find_answer(answers: List[Answer], answer_id: str) -> Answer:
    for answer in answers:
        if answer.id == answer_id:
            return answer
    raise NotFound(f"no answer {answer_id!r}")


# -------------------- Messages -------------------- #

def handle_message(hub: "ChatHub", session: Session, req: TextRequest) -> None:
    room = _chat_room(hub, session)
    if hub.settings.reject_blank_messages and not req.text.strip():
        raise ValidationError("message text must not be blank")
    message = Message(
        **hub.author_snapshot(session),
        id=hub.new_id(),
        text=req.text,
        timestamp=hub.timestamp(),
    )
    # bounded deque: appending past capacity drops the oldest message
    room.messages.append(message)
    hub.emit_room(room, "message", message)


def handle_delete_message(hub: "ChatHub", session: Session, req: DeleteMessageRequest) -> None:
    room = _chat_room(hub, session)
    message: Optional[Message] = next((m for m in room.messages if m.id == req.message_id), None)
    if message is None:
        raise NotFound(f"no message {req.message_id!r}")
    _check_author(message, session, "message")
    room.messages.remove(message)
    hub.emit_room(room, "messageDeleted", MessageDeletedEvent(message_id=message.id))


def handle_clear_all_messages(hub: "ChatHub", session: Session, req: EmptyRequest) -> None:
    room = _chat_room(hub, session)
    room.messages.clear()
    hub.emit_room(room, "allMessagesCleared")


# -------------------- Notice -------------------- #

def handle_set_notice(hub: "ChatHub", session: Session, req: TextRequest) -> None:
    room = _chat_room(hub, session)
    room.notice = Notice(
        **hub.author_snapshot(session),
        id=hub.new_id(),
        text=req.text,
        timestamp=hub.timestamp(),
    )
    # a new notice starts a fresh round of answers
    room.answers = []
    hub.emit_room(room, "notice", room.notice)


def handle_update_notice(hub: "ChatHub", session: Session, req: TextRequest) -> None:
    room = _chat_room(hub, session)
    if room.notice is None:
        raise NotFound("no notice")
    _check_author(room.notice, session, "notice")
    room.notice.text = req.text
    room.notice.timestamp = hub.timestamp()
    hub.emit_room(room, "notice", room.notice)


def handle_delete_notice(hub: "ChatHub", session: Session, req: EmptyRequest) -> None:
    room = _chat_room(hub, session)
    if room.notice is None:
        raise NotFound("no notice")
    _check_author(room.notice, session, "notice")
    room.notice = None
    room.answers = []
    hub.emit_room(room, "noticeDeleted")


# -------------------- Answers -------------------- #

def handle_add_answer(hub: "ChatHub", session: Session, req: TextRequest) -> None:
    """One answer per session: a second submission rewrites the first."""
    room = _chat_room(hub, session)
    if room.notice is None:
        raise NotFound("no notice to answer")

    existing = next((a for a in room.answers if a.author_session_id == session.session_id), None)
    if existing is not None:
        existing.text = req.text
        existing.timestamp = hub.timestamp()
        hub.emit_room(room, "answerUpdated", existing)
        return

    answer = Answer(
        **hub.author_snapshot(session),
        id=hub.new_id(),
        text=req.text,
        timestamp=hub.timestamp(),
    )
    room.answers.append(answer)
    hub.emit_room(room, "answer", answer)


def handle_update_answer(hub: "ChatHub", session: Session, req: UpdateAnswerRequest) -> None:
    room = _chat_room(hub, session)
    answer = _find_answer(room.answers, req.answer_id)
    _check_author(answer, session, "answer")
    answer.text = req.text
    answer.timestamp = hub.timestamp()
    hub.emit_room(room, "answerUpdated", answer)


def handle_delete_answer(hub: "ChatHub", session: Session, req: DeleteAnswerRequest) -> None:
    room = _chat_room(hub, session)
    answer = _find_answer(room.answers, req.answer_id)
    _check_author(answer, session, "answer")
    room.answers.remove(answer)
    hub.emit_room(room, "answerDeleted", AnswerDeletedEvent(answer_id=answer.id))


# -------------------- Typing -------------------- #

def handle_typing_start(hub: "ChatHub", session: Session, req: EmptyRequest) -> None:
    room = hub.current_room(session)
    hub.emit_room(
        room,
        "typing",
        TypingEvent(user_id=session.user_id, display_name=session.display_name),
        exclude=session.session_id,
    )


def handle_typing_stop(hub: "ChatHub", session: Session, req: EmptyRequest) -> None:
    room = hub.current_room(session)
    hub.emit_room(room, "typingStop", TypingStopEvent(user_id=session.user_id), exclude=session.session_id)


__all__ = [
    "handle_message",
    "handle_delete_message",
    "handle_clear_all_messages",
    "handle_set_notice",
    "handle_update_notice",
    "handle_delete_notice",
    "handle_add_answer",
    "handle_update_answer",
    "handle_delete_answer",
    "handle_typing_start",
    "handle_typing_stop",
]
