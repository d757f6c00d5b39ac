"""Live collaboration rooms: per-user sections, live text and mentions."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Set

from .constants import SECTION_ID_PREFIX, RoomKind
from .errors import NotFound, PermissionDenied
from .room import Room
from .schemas import (
    DeleteSectionRequest,
    EmptyRequest,
    LiveContentUpdatedEvent,
    LiveEntry,
    MentionedEvent,
    MentionUserRequest,
    ReorderSectionsRequest,
    Section,
    SectionDeletedEvent,
    SectionsReorderedEvent,
    TextRequest,
)
from .session import Session

if TYPE_CHECKING:
    from .hub import ChatHub

logger = logging.getLogger(__name__)


def section_id_for(user_id: str) -> str:
    return f"{SECTION_ID_PREFIX}{user_id}"


def get_or_create_user_section(session: Session, room: Room) -> str:
    """Return the id of the section holding *session*'s text, creating it if needed.

    There is exactly one section per user id and room, so repeated calls
    always return the same id.
    """
    cached = session.owned_section_id
    if cached is not None and cached in room.sections:
        return cached

    section_id = section_id_for(session.user_id)
    section = room.sections.get(section_id)
    if section is None:
        section = Section(
            id=section_id,
            name=session.display_name,
            owner=session.user_id,
            member_user_ids={session.user_id},
        )
        room.add_section(section)
    else:
        section.member_user_ids.add(session.user_id)
    session.owned_section_id = section_id
    return section_id


def resync_section_name(session: Session, room: Room) -> bool:
    """Mirror the owner's current display name onto their section."""
    section = room.sections.get(section_id_for(session.user_id))
    if section is None or section.owner != session.user_id:
        return False
    if section.name == session.display_name:
        return False
    section.name = session.display_name
    return True


def _write_live_text(hub: "ChatHub", session: Session, room: Room, text: str) -> LiveContentUpdatedEvent:
    section_id = get_or_create_user_section(session, room)
    entry = LiveEntry(text=text, section_id=section_id, timestamp=hub.timestamp())
    room.live_content[session.user_id] = entry
    return LiveContentUpdatedEvent(
        user_id=session.user_id,
        emoji=session.emoji,
        color=session.color,
        display_name=session.display_name,
        text=entry.text,
        section_id=entry.section_id,
        timestamp=entry.timestamp,
    )


# ---------------------------------------------------------------------------
# Event handlers
# ---------------------------------------------------------------------------

def handle_update_live_content(hub: "ChatHub", session: Session, req: TextRequest) -> None:
    room = hub.current_room(session).require(RoomKind.LIVE)
    update = _write_live_text(hub, session, room, req.text)
    hub.emit_room(room, "sectionsUpdated", room.section_summaries())
    hub.emit_room(room, "liveContentUpdated", update)


def handle_clear_live_content(hub: "ChatHub", session: Session, req: EmptyRequest) -> None:
    # The section itself stays; only the text is blanked.
    room = hub.current_room(session).require(RoomKind.LIVE)
    update = _write_live_text(hub, session, room, "")
    hub.emit_room(room, "liveContentUpdated", update)


def handle_delete_section(hub: "ChatHub", session: Session, req: DeleteSectionRequest) -> None:
    room = hub.current_room(session).require(RoomKind.LIVE)
    section = room.sections.get(req.section_id)
    if section is None:
        raise NotFound(f"no section {req.section_id!r}")
    if hub.settings.section_delete_policy == "owner" and section.owner != session.user_id:
        raise PermissionDenied("only the section owner may delete it")

    room.remove_section(section.id)
    for member in hub.members(room):
        if member.owned_section_id == section.id:
            member.owned_section_id = None
    logger.info("section %s deleted from %s by %s", section.id, room.room_id, session.session_id)

    hub.emit_room(room, "sectionDeleted", SectionDeletedEvent(section_id=section.id))
    hub.emit_room(room, "sectionsUpdated", room.section_summaries())


def handle_reorder_sections(hub: "ChatHub", session: Session, req: ReorderSectionsRequest) -> None:
    room = hub.current_room(session).require(RoomKind.LIVE)
    order = room.apply_section_order(req.section_order)
    hub.emit_room(room, "sectionsReordered", SectionsReorderedEvent(section_order=order))


def _mention_from(session: Session, room: Room) -> MentionedEvent:
    return MentionedEvent(
        from_user_id=session.user_id,
        from_display_name=session.display_name,
        room_id=room.room_id,
        room_name=room.name,
    )


def handle_mention_user(hub: "ChatHub", session: Session, req: MentionUserRequest) -> None:
    room = hub.current_room(session).require(RoomKind.LIVE)
    target_user_id = req.target_user_id.strip()
    for member in hub.members(room):
        if member.user_id == target_user_id:
            hub.send(member, "mentioned", _mention_from(session, room))
            return
    raise NotFound(f"{target_user_id!r} is not in this room")


def handle_mention_all(hub: "ChatHub", session: Session, req: EmptyRequest) -> None:
    room = hub.current_room(session).require(RoomKind.LIVE)
    participants: Set[str] = set()
    for section in room.sections.values():
        participants.add(section.owner)
        participants.update(section.member_user_ids)

    include_sender = hub.settings.mention_all_includes_sender
    targets = [
        member
        for member in hub.members(room)
        if member.user_id in participants and (include_sender or member.session_id != session.session_id)
    ]
    hub.emit_sessions(targets, "mentioned", _mention_from(session, room))


__all__ = [
    "section_id_for",
    "get_or_create_user_section",
    "resync_section_name",
    "handle_update_live_content",
    "handle_clear_live_content",
    "handle_delete_section",
    "handle_reorder_sections",
    "handle_mention_user",
    "handle_mention_all",
]
