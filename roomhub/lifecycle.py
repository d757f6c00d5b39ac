"""Joining, switching and leaving rooms.

Each function runs synchronously inside the hub lock. The order of emitted
events matters to clients: membership changes always reach the room list
before the room snapshot that depends on them.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .constants import RoomKind
from .errors import InvalidState
from .live import resync_section_name
from .lobby import broadcast_rooms
from .room import Room
from .schemas import (
    ChangeRoomRequest,
    CreateRoomRequest,
    EmptyRequest,
    JoinedEvent,
    JoinRequest,
    ProfileUpdatedEvent,
    RoomCreatedEvent,
    UpdateProfileRequest,
    UserJoinedEvent,
    UserLeftEvent,
)
from .session import Session

if TYPE_CHECKING:
    from .hub import ChatHub

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Membership primitives
# ---------------------------------------------------------------------------

def enter_room(hub: "ChatHub", session: Session, room: Room) -> None:
    room.add_member(session.session_id)
    session.current_room_id = room.room_id
    session.owned_section_id = None


def leave_current_room(hub: "ChatHub", session: Session) -> None:
    """Remove *session* from its room and tell everybody.

    Nothing the session authored or owns is removed.
    """
    room = hub.rooms.get(session.current_room_id)
    session.current_room_id = None
    session.owned_section_id = None
    if room is None:
        return
    room.remove_member(session.session_id, now=hub.monotonic())
    broadcast_rooms(hub)
    hub.emit_room(
        room,
        "userLeft",
        UserLeftEvent(user_id=session.user_id, display_name=session.display_name, user_count=room.user_count),
    )


def announce_arrival(hub: "ChatHub", session: Session, room: Room) -> None:
    hub.emit_room(
        room,
        "userJoined",
        UserJoinedEvent(
            user_id=session.user_id,
            emoji=session.emoji,
            display_name=session.display_name,
            user_count=room.user_count,
        ),
        exclude=session.session_id,
    )


def create_room(hub: "ChatHub", name: str, kind: RoomKind = RoomKind.CHAT) -> Room:
    """Create a room and refresh every client's room list."""
    room = hub.rooms.create(name, kind)
    logger.info("room created: %s (%s)", room.room_id, room.kind.value)
    broadcast_rooms(hub)
    return room


# ---------------------------------------------------------------------------
# Event handlers
# ---------------------------------------------------------------------------

def handle_join(hub: "ChatHub", session: Session, req: JoinRequest) -> None:
    if session.joined:
        raise InvalidState("already joined; use changeRoom")
    hub.sessions.register(session, req.user_id, req.emoji, req.color)
    room_id = (req.room_id or "").strip() or hub.settings.default_room_id
    room = hub.rooms.get_or_create(room_id, RoomKind.CHAT)
    enter_room(hub, session, room)
    logger.info("%s joined %s as %r", session.session_id, room.room_id, session.user_id)

    hub.send(
        session,
        "joined",
        JoinedEvent(
            session_id=session.session_id,
            user_id=session.user_id,
            emoji=session.emoji,
            color=session.color,
            display_name=session.display_name,
        ),
    )
    hub.send(session, "rooms", hub.rooms.list_rooms())
    hub.send(session, "roomData", room.snapshot())
    broadcast_rooms(hub)
    announce_arrival(hub, session, room)


def handle_create_room(hub: "ChatHub", session: Session, req: CreateRoomRequest) -> None:
    room = create_room(hub, req.room_name, req.room_type or RoomKind.CHAT)
    hub.send(session, "roomCreated", RoomCreatedEvent(room_id=room.room_id, name=room.name, type=room.kind))


def handle_change_room(hub: "ChatHub", session: Session, req: ChangeRoomRequest) -> None:
    if req.room_id == session.current_room_id:
        hub.send(session, "roomData", hub.current_room(session).snapshot())
        return

    leave_current_room(hub, session)
    room = hub.rooms.get_or_create(req.room_id, RoomKind.CHAT)
    enter_room(hub, session, room)
    logger.info("%s switched to %s", session.session_id, room.room_id)

    broadcast_rooms(hub)
    hub.send(session, "roomData", room.snapshot())
    announce_arrival(hub, session, room)


def handle_update_profile(hub: "ChatHub", session: Session, req: UpdateProfileRequest) -> None:
    hub.sessions.update_profile(
        session.session_id,
        emoji=req.emoji,
        color=req.color,
        fields=set(req.model_fields_set),
    )
    room = hub.current_room(session)
    hub.emit_room(
        room,
        "profileUpdated",
        ProfileUpdatedEvent(
            session_id=session.session_id,
            user_id=session.user_id,
            emoji=session.emoji,
            color=session.color,
            display_name=session.display_name,
        ),
    )
    # Section names follow their owner's display name in every live room.
    for live_room in hub.rooms:
        if live_room.kind is RoomKind.LIVE and resync_section_name(session, live_room):
            hub.emit_room(live_room, "sectionsUpdated", live_room.section_summaries())


def handle_get_room_data(hub: "ChatHub", session: Session, req: EmptyRequest) -> None:
    hub.send(session, "roomData", hub.current_room(session).snapshot())


__all__ = [
    "enter_room",
    "leave_current_room",
    "announce_arrival",
    "create_room",
    "handle_join",
    "handle_create_room",
    "handle_change_room",
    "handle_update_profile",
    "handle_get_room_data",
]
