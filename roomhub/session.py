"""Connected sessions and the registry of joined ones."""
from __future__ import annotations

import asyncio
import logging
import uuid
from enum import Enum
from typing import Dict, Iterator, Optional

from .errors import ValidationError

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    DISCONNECTED = "disconnected"
    JOINED = "joined"


def _clean_label(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class Session:
    """One client connection and the identity it joined with.

    A session is created when the transport accepts a connection and stays
    ``DISCONNECTED`` until a successful join. Outbound envelopes are queued on
    ``outbox``; the transport drains it on its own task. A client that lets
    ``outbox_limit`` envelopes pile up is cut off: the queue is emptied and a
    single ``None`` tells the transport to close the socket.
    """

    def __init__(self, connection_id: Optional[str] = None, outbox_limit: int = 0):
        self.connection_id = connection_id or f"C-{uuid.uuid4().hex[:8]}"
        # Issued by the registry on join; used as the ownership token on authored records.
        self.session_id: Optional[str] = None
        self.user_id: Optional[str] = None
        self.emoji: Optional[str] = None
        self.color: Optional[str] = None
        self.current_room_id: Optional[str] = None
        self.owned_section_id: Optional[str] = None
        self.state = SessionState.DISCONNECTED
        self.outbox: "asyncio.Queue[Optional[dict]]" = asyncio.Queue(maxsize=outbox_limit)
        self.alive = True

    @property
    def joined(self) -> bool:
        return self.state is SessionState.JOINED

    @property
    def display_name(self) -> str:
        """Emoji when set, otherwise the raw user id."""
        return self.emoji or self.user_id or ""

    def push(self, envelope: dict) -> None:
        if not self.alive:
            return
        try:
            self.outbox.put_nowait(envelope)
        except asyncio.QueueFull:
            logger.warning("outbox full, dropping %r", self)
            self.alive = False
            while not self.outbox.empty():
                self.outbox.get_nowait()
            self.outbox.put_nowait(None)

    def close(self) -> None:
        self.alive = False

    def __repr__(self) -> str:
        return f"<Session {self.session_id or self.connection_id} user={self.user_id!r} room={self.current_room_id!r}>"


class SessionRegistry:
    """Joined sessions keyed by their issued session id."""

    def __init__(self) -> None:
        self._sessions: Dict[str, Session] = {}

    def register(
        self,
        session: Session,
        user_id: Optional[str],
        emoji: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Session:
        user_id = (user_id or "").strip()
        if not user_id:
            raise ValidationError("userId must not be empty")
        if session.session_id is None:
            session.session_id = uuid.uuid4().hex
        session.user_id = user_id
        session.emoji = _clean_label(emoji)
        session.color = _clean_label(color)
        session.state = SessionState.JOINED
        self._sessions[session.session_id] = session
        return session

    def unregister(self, session_id: Optional[str]) -> None:
        if session_id is None:
            return
        session = self._sessions.pop(session_id, None)
        if session is not None:
            session.state = SessionState.DISCONNECTED
            session.current_room_id = None
            session.owned_section_id = None

    def update_profile(
        self,
        session_id: str,
        *,
        emoji: Optional[str] = None,
        color: Optional[str] = None,
        fields: Optional[set] = None,
    ) -> Session:
        """Change display attributes in place.

        ``fields`` names the attributes the caller actually sent, so an
        omitted attribute is left alone while an empty one is cleared.
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise ValidationError("unknown session")
        fields = {"emoji", "color"} if fields is None else fields
        if "emoji" in fields:
            session.emoji = _clean_label(emoji)
        if "color" in fields:
            session.color = _clean_label(color)
        return session

    def get(self, session_id: Optional[str]) -> Optional[Session]:
        if session_id is None:
            return None
        return self._sessions.get(session_id)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __iter__(self) -> Iterator[Session]:
        return iter(list(self._sessions.values()))

    def __len__(self) -> int:
        return len(self._sessions)


__all__ = ["Session", "SessionRegistry", "SessionState"]
