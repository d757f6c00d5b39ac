from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .hub import ChatHub, run_room_janitor
from .routers import rooms as rooms_router
from .routers import websockets as ws_router
from .settings import Settings

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    hub = ChatHub(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        janitor: Optional[asyncio.Task] = None
        if settings.room_idle_ttl > 0:
            logger.info("idle room eviction after %ss", settings.room_idle_ttl)
            janitor = asyncio.create_task(run_room_janitor(hub, settings.janitor_interval))
        yield
        if janitor is not None:
            janitor.cancel()
            with suppress(asyncio.CancelledError):
                await janitor

    # -----------------------------
    # FastAPI app instance
    # -----------------------------

    app = FastAPI(title="roomhub", lifespan=lifespan)
    app.state.hub = hub
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(rooms_router.router)
    app.include_router(ws_router.router)
    return app


__all__ = ["create_app"]
