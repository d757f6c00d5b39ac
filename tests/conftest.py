import os
from typing import List

import pytest

from roomhub.constants import RoomKind
from roomhub.hub import ChatHub
from roomhub.settings import Settings


class FakeClock:
    def __init__(self, start: float):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def drain(session) -> List[dict]:
    out = []
    while not session.outbox.empty():
        out.append(session.outbox.get_nowait())
    return out


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep ROOMHUB_* variables from the outer shell out of the tests."""
    for name in list(os.environ):
        if name.startswith("ROOMHUB_"):
            monkeypatch.delenv(name)


@pytest.fixture
def clock():
    return FakeClock(1_700_000_000.0)


@pytest.fixture
def monotonic():
    return FakeClock(1_000.0)


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def hub(settings, clock, monotonic):
    return ChatHub(settings, clock=clock, monotonic=monotonic)


@pytest.fixture
def received():
    """Pop everything queued for a session."""
    return drain


@pytest.fixture
def flush():
    def _flush(*sessions):
        for session in sessions:
            drain(session)

    return _flush


@pytest.fixture
def send(hub):
    def _send(session, event, **data):
        hub.dispatch(session, {"type": event, "data": data})

    return _send


@pytest.fixture
def join(hub):
    def _join(user_id, room_id=None, emoji=None, color=None, keep=False):
        session = hub.connect()
        data = {"userId": user_id}
        if room_id is not None:
            data["roomId"] = room_id
        if emoji is not None:
            data["emoji"] = emoji
        if color is not None:
            data["color"] = color
        hub.dispatch(session, {"type": "join", "data": data})
        if not keep:
            drain(session)
        return session

    return _join


@pytest.fixture
def live_room(hub):
    return hub.rooms.get_or_create("board", RoomKind.LIVE, "Board")
