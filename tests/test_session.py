import pytest

from roomhub.errors import ValidationError
from roomhub.session import Session, SessionRegistry, SessionState


def test_register_trims_and_issues_session_id():
    registry = SessionRegistry()
    session = registry.register(Session(), "  alice  ", emoji=" 🦊 ")

    assert session.user_id == "alice"
    assert session.emoji == "🦊"
    assert session.session_id
    assert session.state is SessionState.JOINED
    assert session.session_id in registry
    assert len(registry) == 1


@pytest.mark.parametrize("user_id", ["", "   ", None])
def test_register_rejects_blank_user_id(user_id):
    registry = SessionRegistry()
    session = Session()

    with pytest.raises(ValidationError):
        registry.register(session, user_id)

    assert not session.joined
    assert session.session_id is None
    assert len(registry) == 0


def test_same_user_id_can_register_twice():
    registry = SessionRegistry()
    first = registry.register(Session(), "alice")
    second = registry.register(Session(), "alice")

    assert first.session_id != second.session_id
    assert len(registry) == 2


def test_unregister_is_idempotent():
    registry = SessionRegistry()
    session = registry.register(Session(), "alice")
    session.current_room_id = "general"

    registry.unregister(session.session_id)
    registry.unregister(session.session_id)
    registry.unregister(None)

    assert len(registry) == 0
    assert session.state is SessionState.DISCONNECTED
    assert session.current_room_id is None


def test_display_name_prefers_emoji():
    session = Session()
    session.user_id = "alice"
    assert session.display_name == "alice"
    session.emoji = "🐱"
    assert session.display_name == "🐱"


def test_update_profile_only_touches_sent_fields():
    registry = SessionRegistry()
    session = registry.register(Session(), "alice", emoji="🐱", color="#f00")

    registry.update_profile(session.session_id, color="#0f0", fields={"color"})
    assert session.emoji == "🐱"
    assert session.color == "#0f0"

    registry.update_profile(session.session_id, emoji="", fields={"emoji"})
    assert session.emoji is None
    assert session.display_name == "alice"


def test_closed_session_drops_outbound():
    session = Session()
    session.push({"type": "x", "data": {}})
    session.close()
    session.push({"type": "y", "data": {}})

    assert session.outbox.qsize() == 1


def test_full_outbox_cuts_the_session_off():
    session = Session(outbox_limit=2)
    session.push({"type": "a", "data": {}})
    session.push({"type": "b", "data": {}})
    assert session.alive

    session.push({"type": "c", "data": {}})
    assert not session.alive
    assert session.outbox.qsize() == 1
    assert session.outbox.get_nowait() is None

    session.push({"type": "d", "data": {}})
    assert session.outbox.empty()


def test_unbounded_outbox_by_default():
    session = Session()
    for n in range(5_000):
        session.push({"type": "tick", "data": {"n": n}})
    assert session.alive
    assert session.outbox.qsize() == 5_000
