from __future__ import annotations

import re
from collections import deque
from typing import Callable, Deque, Dict, List, Optional

from .constants import MESSAGE_HISTORY_LIMIT, RoomKind
from .errors import ValidationError, WrongRoomKind
from .schemas import (
    Answer,
    LiveEntry,
    Message,
    Notice,
    RoomData,
    RoomSummary,
    Section,
    SectionSummary,
)


class Room:
    """Runtime state of one chat or live room.

    Only the attribute set matching ``kind`` is ever touched; handlers check
    the kind with :meth:`require` before mutating.
    """

    def __init__(
        self,
        room_id: str,
        name: Optional[str] = None,
        kind: RoomKind = RoomKind.CHAT,
        history_limit: int = MESSAGE_HISTORY_LIMIT,
        created_at: Optional[float] = None,
    ):
        self.room_id = room_id
        self.name = name or room_id
        self.kind = RoomKind(kind)
        # session ids in join order (dict used as an ordered set)
        self.members: Dict[str, None] = {}

        # --- chat --- #
        self.messages: Deque[Message] = deque(maxlen=history_limit)
        self.notice: Optional[Notice] = None
        self.answers: List[Answer] = []

        # --- live --- #
        self.live_content: Dict[str, LiveEntry] = {}
        self.sections: Dict[str, Section] = {}
        self.section_order: List[str] = []

        # Monotonic time the room last became empty; None while occupied.
        self.emptied_at: Optional[float] = created_at

    # -------------------- Membership -------------------- #

    def add_member(self, session_id: str) -> None:
        self.members[session_id] = None
        self.emptied_at = None

    def remove_member(self, session_id: str, now: Optional[float] = None) -> None:
        self.members.pop(session_id, None)
        if not self.members:
            self.emptied_at = now

    @property
    def user_count(self) -> int:
        return len(self.members)

    def require(self, kind: RoomKind) -> "Room":
        if self.kind is not kind:
            raise WrongRoomKind(f"room {self.room_id!r} is a {self.kind.value} room")
        return self

    # -------------------- Live sections -------------------- #

    def ordered_sections(self) -> List[Section]:
        return [self.sections[sid] for sid in self.section_order if sid in self.sections]

    def section_summaries(self) -> List[SectionSummary]:
        return [
            SectionSummary(
                id=section.id,
                name=section.name,
                user_count=len(section.member_user_ids),
                owner=section.owner,
            )
            for section in self.ordered_sections()
        ]

    def add_section(self, section: Section) -> None:
        self.sections[section.id] = section
        if section.id not in self.section_order:
            self.section_order.append(section.id)

    def remove_section(self, section_id: str) -> Optional[Section]:
        """Drop a section together with every live entry pointing at it."""
        section = self.sections.pop(section_id, None)
        if section is None:
            return None
        self.section_order = [sid for sid in self.section_order if sid != section_id]
        for user_id in [uid for uid, entry in self.live_content.items() if entry.section_id == section_id]:
            del self.live_content[user_id]
        return section

    def apply_section_order(self, requested: List[str]) -> List[str]:
        """Store *requested* as the section order and return what was stored.

        Unknown and repeated ids are dropped; sections the client left out keep
        their previous relative order after the requested ones.
        """
        order: List[str] = []
        for sid in requested:
            if sid in self.sections and sid not in order:
                order.append(sid)
        order.extend(sid for sid in self.section_order if sid in self.sections and sid not in order)
        self.section_order = order
        return list(order)

    # -------------------- Views -------------------- #

    def summary(self) -> RoomSummary:
        return RoomSummary(id=self.room_id, name=self.name, type=self.kind, user_count=self.user_count)

    def snapshot(self) -> RoomData:
        """Everything a client needs to render the room from scratch."""
        data = RoomData(room_id=self.room_id, name=self.name, type=self.kind)
        if self.kind is RoomKind.CHAT:
            data.messages = list(self.messages)
            data.notice = self.notice
            data.answers = list(self.answers)
        else:
            data.live_content = dict(self.live_content)
            data.sections = self.section_summaries()
            data.section_order = [s.id for s in self.ordered_sections()]
        return data


_WHITESPACE = re.compile(r"\s+")


def slugify(name: str) -> str:
    return _WHITESPACE.sub("-", name.strip().lower())


class RoomStore:
    """All rooms by id, in creation order."""

    def __init__(
        self,
        history_limit: int = MESSAGE_HISTORY_LIMIT,
        id_source: Optional[Callable[[], int]] = None,
        monotonic: Optional[Callable[[], float]] = None,
    ):
        self.history_limit = history_limit
        self._rooms: Dict[str, Room] = {}
        self._id_source = id_source
        self._monotonic = monotonic

    def _now(self) -> Optional[float]:
        return self._monotonic() if self._monotonic else None

    def get(self, room_id: Optional[str]) -> Optional[Room]:
        if room_id is None:
            return None
        return self._rooms.get(room_id)

    def get_or_create(self, room_id: str, kind: RoomKind = RoomKind.CHAT, name: Optional[str] = None) -> Room:
        """Return the room, creating it when absent. An existing room is never altered."""
        room = self._rooms.get(room_id)
        if room is None:
            room = Room(room_id, name, kind, self.history_limit, created_at=self._now())
            self._rooms[room_id] = room
        return room

    def create(self, name: str, kind: RoomKind = RoomKind.CHAT) -> Room:
        """Create a new room with an id derived from *name* and the clock."""
        name = name.strip()
        if not name:
            raise ValidationError("room name must not be empty")
        stamp = self._id_source() if self._id_source else len(self._rooms)
        base = slugify(name)
        room_id = f"{base}-{stamp}"
        while room_id in self._rooms:
            stamp += 1
            room_id = f"{base}-{stamp}"
        return self.get_or_create(room_id, kind, name)

    def remove(self, room_id: str) -> Optional[Room]:
        return self._rooms.pop(room_id, None)

    def list_rooms(self) -> List[RoomSummary]:
        return [room.summary() for room in self._rooms.values()]

    def __iter__(self):
        return iter(list(self._rooms.values()))

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)


__all__ = ["Room", "RoomStore", "slugify"]
