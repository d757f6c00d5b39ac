from __future__ import annotations

import asyncio
import json
from contextlib import suppress
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from ..errors import ValidationError
from ..hub import ChatHub
from ..session import Session

router = APIRouter(prefix="", tags=["ws"])


async def _pump_outbox(ws: WebSocket, session: Session) -> None:
    """Forward queued envelopes to the socket until it goes away."""
    while True:
        envelope = await session.outbox.get()
        try:
            if envelope is None:
                # the session fell too far behind
                await ws.close(code=status.WS_1008_POLICY_VIOLATION)
                return
            await ws.send_json(envelope)
        except (WebSocketDisconnect, RuntimeError, OSError):
            # socket already closed; the reader loop handles the disconnect
            return


def _decode_frame(message: dict) -> Any:
    """Parse the JSON carried by a text or binary websocket message."""
    raw = message.get("text")
    if raw is None:
        payload = message.get("bytes")
        if payload is None:
            raise ValidationError("empty frame")
        try:
            raw = payload.decode("utf-8")
        except UnicodeDecodeError:
            raise ValidationError("binary frame is not UTF-8")
    try:
        return json.loads(raw)
    except ValueError:
        raise ValidationError("frame is not valid JSON")


@router.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    hub: ChatHub = ws.app.state.hub
    await ws.accept()
    session = hub.connect()
    writer = asyncio.create_task(_pump_outbox(ws, session))
    try:
        while session.alive:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                break
            try:
                frame = _decode_frame(message)
            except ValidationError as exc:
                hub.reject(session, exc)
                continue
            hub.dispatch(session, frame)
    finally:
        hub.disconnect(session)
        writer.cancel()
        with suppress(asyncio.CancelledError):
            await writer


__all__ = ["router"]
