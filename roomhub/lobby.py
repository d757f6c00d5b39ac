"""Helpers for keeping every client's room picker current."""
from __future__ import annotations

from typing import TYPE_CHECKING, List

from .schemas import RoomSummary

if TYPE_CHECKING:
    from .hub import ChatHub


def collect_room_summaries(hub: "ChatHub") -> List[RoomSummary]:
    """Every room with its live member count, in creation order."""
    return hub.rooms.list_rooms()


def broadcast_rooms(hub: "ChatHub") -> None:
    """Push the room list to *all* connections, whichever room they are in."""
    if not hub.connections:
        return
    hub.emit_all("rooms", collect_room_summaries(hub))


__all__ = ["broadcast_rooms", "collect_room_summaries"]
