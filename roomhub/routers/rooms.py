from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ..constants import RoomKind
from ..errors import ValidationError
from ..hub import ChatHub
from ..lifecycle import create_room as open_room
from ..lobby import collect_room_summaries
from ..schemas import CreateRoomRequest, RoomCreatedEvent, RoomData, RoomSummary

router = APIRouter(prefix="", tags=["rooms"])


def get_hub(request: Request) -> ChatHub:
    return request.app.state.hub


@router.get("/rooms", response_model=List[RoomSummary], response_model_by_alias=True)
async def list_rooms(hub: ChatHub = Depends(get_hub)):
    with hub.lock:
        return collect_room_summaries(hub)


@router.post(
    "/rooms",
    response_model=RoomCreatedEvent,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_room(req: CreateRoomRequest, hub: ChatHub = Depends(get_hub)):
    with hub.lock:
        try:
            room = open_room(hub, req.room_name, req.room_type or RoomKind.CHAT)
        except ValidationError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    return RoomCreatedEvent(room_id=room.room_id, name=room.name, type=room.kind)


@router.get("/rooms/{room_id}", response_model=RoomData, response_model_by_alias=True)
async def get_room(room_id: str, hub: ChatHub = Depends(get_hub)):
    with hub.lock:
        room = hub.rooms.get(room_id)
        if room is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
        return room.snapshot()


@router.get("/health")
async def health(hub: ChatHub = Depends(get_hub)):
    return {"status": "ok", **hub.stats()}


__all__ = ["router", "get_hub"]
