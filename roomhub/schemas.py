"""Pydantic data schemas shared across the hub.

Stored records (messages, notices, answers, live entries, sections) and every
outbound event payload live here, followed by one request model per inbound
websocket event. Field names are snake_case in Python and camelCase on the
wire.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .constants import MAX_TEXT_LENGTH, RoomKind


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# -----------------------------
# Stored records
# -----------------------------

class AuthorSnapshot(CamelModel):
    """Display identity of the author, frozen at the moment of writing."""

    user_id: str
    emoji: Optional[str] = None
    color: Optional[str] = None
    display_name: str
    author_session_id: str


class Message(AuthorSnapshot):
    id: str
    text: str
    timestamp: str


class Notice(AuthorSnapshot):
    id: str
    text: str
    timestamp: str


class Answer(AuthorSnapshot):
    id: str
    text: str
    timestamp: str


class LiveEntry(CamelModel):
    text: str
    section_id: str
    timestamp: str


class Section(CamelModel):
    """Per-user container of live text inside a live room."""

    id: str
    name: str
    owner: str
    member_user_ids: Set[str] = Field(default_factory=set)


# -----------------------------
# Outbound payloads
# -----------------------------

class RoomSummary(CamelModel):
    id: str
    name: str
    type: RoomKind
    user_count: int


class SectionSummary(CamelModel):
    id: str
    name: str
    user_count: int
    owner: str


class RoomData(CamelModel):
    room_id: str
    name: str
    type: RoomKind
    messages: List[Message] = Field(default_factory=list)
    notice: Optional[Notice] = None
    answers: List[Answer] = Field(default_factory=list)
    live_content: Dict[str, LiveEntry] = Field(default_factory=dict)
    sections: List[SectionSummary] = Field(default_factory=list)
    section_order: List[str] = Field(default_factory=list)


class JoinedEvent(CamelModel):
    session_id: str
    user_id: str
    emoji: Optional[str] = None
    color: Optional[str] = None
    display_name: str


class RoomCreatedEvent(CamelModel):
    room_id: str
    name: str
    type: RoomKind


class UserJoinedEvent(CamelModel):
    user_id: str
    emoji: Optional[str] = None
    display_name: str
    user_count: int


class UserLeftEvent(CamelModel):
    user_id: str
    display_name: str
    user_count: int


class ProfileUpdatedEvent(CamelModel):
    session_id: str
    user_id: str
    emoji: Optional[str] = None
    color: Optional[str] = None
    display_name: str


class MessageDeletedEvent(CamelModel):
    message_id: str


class AnswerDeletedEvent(CamelModel):
    answer_id: str


class TypingEvent(CamelModel):
    user_id: str
    display_name: str


class TypingStopEvent(CamelModel):
    user_id: str


class LiveContentUpdatedEvent(CamelModel):
    user_id: str
    emoji: Optional[str] = None
    color: Optional[str] = None
    display_name: str
    text: str
    section_id: str
    timestamp: str


class SectionDeletedEvent(CamelModel):
    section_id: str


class SectionsReorderedEvent(CamelModel):
    section_order: List[str]


class MentionedEvent(CamelModel):
    from_user_id: str
    from_display_name: str
    room_id: str
    room_name: str


class ErrorEvent(CamelModel):
    code: str
    event: Optional[str] = None
    detail: str = ""


# -----------------------------
# Inbound requests
# -----------------------------

class Request(CamelModel):
    pass


class TextRequest(Request):
    text: str = Field(max_length=MAX_TEXT_LENGTH)


class JoinRequest(Request):
    user_id: str
    emoji: Optional[str] = None
    color: Optional[str] = None
    room_id: Optional[str] = None


class CreateRoomRequest(Request):
    room_name: str
    room_type: Optional[RoomKind] = None

    @field_validator("room_name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("roomName must not be empty")
        return value


class ChangeRoomRequest(Request):
    room_id: str

    @field_validator("room_id")
    @classmethod
    def _id_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("roomId must not be empty")
        return value


class UpdateProfileRequest(Request):
    emoji: Optional[str] = None
    color: Optional[str] = None


class EmptyRequest(Request):
    pass


class DeleteMessageRequest(Request):
    message_id: str


class UpdateAnswerRequest(TextRequest):
    answer_id: str


class DeleteAnswerRequest(Request):
    answer_id: str


class DeleteSectionRequest(Request):
    section_id: str


class ReorderSectionsRequest(Request):
    section_order: List[str]


class MentionUserRequest(Request):
    target_user_id: str


__all__ = [
    "CamelModel",
    # records
    "AuthorSnapshot",
    "Message",
    "Notice",
    "Answer",
    "LiveEntry",
    "Section",
    # outbound
    "RoomSummary",
    "SectionSummary",
    "RoomData",
    "JoinedEvent",
    "RoomCreatedEvent",
    "UserJoinedEvent",
    "UserLeftEvent",
    "ProfileUpdatedEvent",
    "MessageDeletedEvent",
    "AnswerDeletedEvent",
    "TypingEvent",
    "TypingStopEvent",
    "LiveContentUpdatedEvent",
    "SectionDeletedEvent",
    "SectionsReorderedEvent",
    "MentionedEvent",
    "ErrorEvent",
    # inbound
    "Request",
    "TextRequest",
    "JoinRequest",
    "CreateRoomRequest",
    "ChangeRoomRequest",
    "UpdateProfileRequest",
    "EmptyRequest",
    "DeleteMessageRequest",
    "UpdateAnswerRequest",
    "DeleteAnswerRequest",
    "DeleteSectionRequest",
    "ReorderSectionsRequest",
    "MentionUserRequest",
]
