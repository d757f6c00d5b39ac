"""The state manager owning every room and session.

All mutation of rooms and sessions happens inside :meth:`ChatHub.dispatch`,
:meth:`ChatHub.disconnect` and :meth:`ChatHub.evict_idle_rooms`, each of which
runs to completion under one re-entrant lock and never awaits. Outbound events
are queued on the target sessions' outboxes, so a slow client cannot stall a
handler.
"""
from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Any, Callable, Dict, Iterable, List, Optional

from pydantic import BaseModel

from .dispatch import HANDLERS, PRE_JOIN_EVENTS, frame_event, parse_request
from .clock import IdGenerator, utc_iso
from .constants import RoomKind
from .errors import HubError, InvalidState
from .lifecycle import leave_current_room
from .lobby import broadcast_rooms
from .room import Room, RoomStore
from .schemas import AuthorSnapshot, ErrorEvent
from .session import Session, SessionRegistry
from .settings import Settings

logger = logging.getLogger(__name__)


def encode(payload: Any) -> Any:
    """Turn schema objects (or lists of them) into JSON-ready values."""
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json", by_alias=True)
    if isinstance(payload, (list, tuple)):
        return [encode(item) for item in payload]
    if isinstance(payload, dict):
        return {key: encode(value) for key, value in payload.items()}
    return payload


def envelope(event: str, payload: Any = None) -> Dict[str, Any]:
    return {"type": event, "data": encode(payload) if payload is not None else {}}


class ChatHub:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        clock: Callable[[], float] = time.time,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or Settings()
        self.clock = clock
        self.monotonic = monotonic
        self.new_id = IdGenerator(clock)
        self.sessions = SessionRegistry()
        self.rooms = RoomStore(
            history_limit=self.settings.message_history_limit,
            id_source=self.new_id.next_int,
            monotonic=monotonic,
        )
        self.rooms.get_or_create(self.settings.default_room_id, RoomKind.CHAT, self.settings.default_room_name)
        # every open connection, joined or not
        self.connections: Dict[str, Session] = {}
        self.lock = threading.RLock()

    # ---------------------------------------------------------------------
    # Connection lifecycle (called by the transport)
    # ---------------------------------------------------------------------

    def connect(self, connection_id: Optional[str] = None) -> Session:
        session = Session(connection_id, outbox_limit=self.settings.outbox_limit)
        with self.lock:
            self.connections[session.connection_id] = session
        logger.info("connection opened: %s", session.connection_id)
        return session

    def disconnect(self, session: Session) -> None:
        with self.lock:
            self.connections.pop(session.connection_id, None)
            session.close()
            if session.joined:
                leave_current_room(self, session)
                self.sessions.unregister(session.session_id)
        logger.info("connection closed: %s", session.connection_id)

    def dispatch(self, session: Session, frame: Any) -> None:
        """Validate and apply one inbound frame from *session*."""
        with self.lock:
            event: Optional[str] = None
            try:
                event = frame_event(frame)
                request = parse_request(event, frame)
                if event not in PRE_JOIN_EVENTS:
                    self.require_joined(session)
                HANDLERS[event](self, session, request)
            except HubError as exc:
                self.reject(session, exc, event)
            except Exception:
                logger.exception("handler failed: event=%s session=%r", event, session)
                self.send(session, "error", ErrorEvent(code="server_error", event=event, detail="internal error"))

    def reject(self, session: Session, exc: HubError, event: Optional[str] = None) -> None:
        logger.debug("rejected %s from %r: %s (%s)", event, session, exc, exc.code)
        if self.settings.explicit_rejections:
            self.send(session, "error", ErrorEvent(code=exc.code, event=event, detail=str(exc)))

    # ---------------------------------------------------------------------
    # State helpers for handlers
    # ---------------------------------------------------------------------

    def require_joined(self, session: Session) -> None:
        if not session.joined:
            raise InvalidState("join first")

    def current_room(self, session: Session) -> Room:
        room = self.rooms.get(session.current_room_id)
        if room is None:
            raise InvalidState("session is not in a room")
        return room

    def members(self, room: Room) -> List[Session]:
        sessions = []
        for sid in room.members:
            member = self.sessions.get(sid)
            if member is not None:
                sessions.append(member)
        return sessions

    def timestamp(self) -> str:
        return utc_iso(self.clock())

    def author_snapshot(self, session: Session) -> Dict[str, Any]:
        """Authoring identity fields copied into a new record."""
        return AuthorSnapshot(
            user_id=session.user_id,
            emoji=session.emoji,
            color=session.color,
            display_name=session.display_name,
            author_session_id=session.session_id,
        ).model_dump()

    # ---------------------------------------------------------------------
    # Fan-out
    # ---------------------------------------------------------------------

    def send(self, session: Session, event: str, payload: Any = None) -> None:
        session.push(envelope(event, payload))

    def emit_room(self, room: Room, event: str, payload: Any = None, *, exclude: Optional[str] = None) -> None:
        message = envelope(event, payload)
        for member in self.members(room):
            if member.session_id != exclude:
                member.push(message)

    def emit_sessions(self, targets: Iterable[Session], event: str, payload: Any = None) -> None:
        message = envelope(event, payload)
        for target in targets:
            target.push(message)

    def emit_all(self, event: str, payload: Any = None) -> None:
        self.emit_sessions(list(self.connections.values()), event, payload)

    # ---------------------------------------------------------------------
    # Idle room eviction
    # ---------------------------------------------------------------------

    def evict_idle_rooms(self, now: Optional[float] = None) -> List[str]:
        ttl = self.settings.room_idle_ttl
        if ttl <= 0:
            return []
        with self.lock:
            now = self.monotonic() if now is None else now
            evicted = []
            for room in self.rooms:
                if room.room_id == self.settings.default_room_id or room.members:
                    continue
                if room.emptied_at is not None and now - room.emptied_at >= ttl:
                    self.rooms.remove(room.room_id)
                    evicted.append(room.room_id)
            if evicted:
                logger.info("evicted idle rooms: %s", ", ".join(evicted))
                broadcast_rooms(self)
            return evicted

    def stats(self) -> Dict[str, int]:
        with self.lock:
            return {"rooms": len(self.rooms), "sessions": len(self.sessions), "connections": len(self.connections)}


async def run_room_janitor(hub: ChatHub, interval: float) -> None:
    """Evict idle rooms every *interval* seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        hub.evict_idle_rooms()


__all__ = ["ChatHub", "encode", "envelope", "run_room_janitor"]
