from roomhub.constants import RoomKind
from roomhub.hub import ChatHub
from roomhub.settings import Settings


def types(envelopes):
    return [env["type"] for env in envelopes]


def test_join_sends_snapshot_then_announces(hub, join, received):
    bob = join("bob")
    alice = join("alice", emoji="🦊", keep=True)

    mine = received(alice)
    assert types(mine) == ["joined", "rooms", "roomData", "rooms"]
    joined = mine[0]["data"]
    assert joined["userId"] == "alice"
    assert joined["displayName"] == "🦊"
    assert joined["sessionId"] == alice.session_id
    assert mine[2]["data"]["roomId"] == "general"
    assert mine[2]["data"]["type"] == "chat"

    theirs = received(bob)
    assert types(theirs) == ["rooms", "userJoined"]
    assert theirs[1]["data"] == {"userId": "alice", "emoji": "🦊", "displayName": "🦊", "userCount": 2}
    assert theirs[0]["data"] == [{"id": "general", "name": "General", "type": "chat", "userCount": 2}]


def test_room_list_reaches_sessions_in_other_rooms(join, received):
    elsewhere = join("carol", room_id="lounge")
    join("alice")

    assert types(received(elsewhere)) == ["rooms"]


def test_join_with_empty_user_id_is_rejected(hub, join, received):
    bob = join("bob")
    ghost = hub.connect()
    hub.dispatch(ghost, {"type": "join", "data": {"userId": "   "}})

    out = received(ghost)
    assert types(out) == ["error"]
    assert out[0]["data"]["code"] == "invalid_payload"
    assert out[0]["data"]["event"] == "join"
    assert not ghost.joined
    assert len(hub.sessions) == 1
    assert received(bob) == []


def test_join_twice_is_invalid_state(join, send, received):
    alice = join("alice")
    send(alice, "join", userId="alice")

    out = received(alice)
    assert types(out) == ["error"]
    assert out[0]["data"]["code"] == "invalid_state"


def test_operations_before_join_are_rejected(hub, received):
    session = hub.connect()
    hub.dispatch(session, {"type": "message", "data": {"text": "hi"}})

    out = received(session)
    assert out[0]["data"]["code"] == "invalid_state"
    assert list(hub.rooms.get("general").messages) == []


def test_join_unknown_room_creates_chat_room(hub, join):
    join("alice", room_id="lounge")
    room = hub.rooms.get("lounge")
    assert room.kind is RoomKind.CHAT
    assert room.user_count == 1


def test_change_room_moves_membership(hub, join, send, received, flush):
    alice = join("alice")
    bob = join("bob")
    carol = join("carol", room_id="lounge")
    flush(alice, bob, carol)

    send(alice, "changeRoom", roomId="lounge")

    assert types(received(bob)) == ["rooms", "userLeft", "rooms"]
    assert types(received(carol)) == ["rooms", "rooms", "userJoined"]
    mine = received(alice)
    assert types(mine) == ["rooms", "rooms", "roomData"]
    assert mine[2]["data"]["roomId"] == "lounge"

    assert alice.current_room_id == "lounge"
    assert hub.rooms.get("general").user_count == 1
    assert hub.rooms.get("lounge").user_count == 2


def test_change_room_user_left_payload(join, send, received, flush):
    alice = join("alice", emoji="🦊")
    bob = join("bob")
    flush(alice, bob)

    send(alice, "changeRoom", roomId="elsewhere")

    left = [env for env in received(bob) if env["type"] == "userLeft"][0]
    assert left["data"] == {"userId": "alice", "displayName": "🦊", "userCount": 1}


def test_change_to_current_room_only_resends_snapshot(join, send, received, flush):
    alice = join("alice")
    bob = join("bob")
    flush(alice, bob)

    send(alice, "changeRoom", roomId="general")

    assert types(received(alice)) == ["roomData"]
    assert received(bob) == []


def test_change_room_to_existing_live_room(join, send, received, live_room):
    alice = join("alice")
    send(alice, "changeRoom", roomId="board")

    snapshot = [env for env in received(alice) if env["type"] == "roomData"][0]["data"]
    assert snapshot["type"] == "live"
    assert snapshot["name"] == "Board"


def test_disconnect_leaves_room_and_keeps_history(hub, join, send, received, flush):
    alice = join("alice")
    bob = join("bob")
    send(alice, "message", text="still here")
    flush(alice, bob)

    hub.disconnect(alice)

    assert types(received(bob)) == ["rooms", "userLeft"]
    assert alice.session_id not in hub.sessions
    assert alice.connection_id not in hub.connections
    room = hub.rooms.get("general")
    assert room.user_count == 1
    assert [m.text for m in room.messages] == ["still here"]


def test_disconnect_before_join_is_quiet(hub, join, received):
    bob = join("bob")
    session = hub.connect()
    hub.disconnect(session)
    assert received(bob) == []


def test_create_room_broadcasts_list_and_acks_creator(hub, join, send, received, flush):
    alice = join("alice")
    bob = join("bob", room_id="lounge")
    flush(alice, bob)

    send(alice, "createRoom", roomName="My Board", roomType="live")

    mine = received(alice)
    assert types(mine) == ["rooms", "roomCreated"]
    created = mine[1]["data"]
    assert created["roomId"].startswith("my-board-")
    assert created["type"] == "live"
    assert any(r["id"] == created["roomId"] for r in mine[0]["data"])
    assert types(received(bob)) == ["rooms"]

    room = hub.rooms.get(created["roomId"])
    assert room.kind is RoomKind.LIVE
    assert room.user_count == 0
    assert alice.current_room_id == "general"


def test_create_room_defaults_to_chat(hub, join, send, received):
    alice = join("alice")
    send(alice, "createRoom", roomName="Side")
    created = [env for env in received(alice) if env["type"] == "roomCreated"][0]["data"]
    assert hub.rooms.get(created["roomId"]).kind is RoomKind.CHAT


def test_create_room_validation(join, send, received):
    alice = join("alice")
    send(alice, "createRoom", roomName="  ")
    send(alice, "createRoom", roomName="x", roomType="video")

    codes = [env["data"]["code"] for env in received(alice)]
    assert codes == ["invalid_payload", "invalid_payload"]


def test_get_room_data_resends_snapshot(join, send, received):
    alice = join("alice")
    send(alice, "message", text="hi")
    received(alice)

    send(alice, "getRoomData")
    out = received(alice)
    assert types(out) == ["roomData"]
    assert [m["text"] for m in out[0]["data"]["messages"]] == ["hi"]


def test_update_profile_keeps_old_snapshots(hub, join, send, received, flush):
    alice = join("alice")
    bob = join("bob")
    send(alice, "message", text="before")
    flush(alice, bob)

    send(alice, "updateProfile", emoji="🐙", color="#123456")

    update = received(bob)[0]
    assert update["type"] == "profileUpdated"
    assert update["data"]["displayName"] == "🐙"
    assert update["data"]["color"] == "#123456"

    send(alice, "message", text="after")
    messages = list(hub.rooms.get("general").messages)
    assert messages[0].display_name == "alice"
    assert messages[0].emoji is None
    assert messages[1].display_name == "🐙"


def test_scenario_history_visible_to_later_joiner(join, send, received):
    alice = join("alice")
    send(alice, "message", text="hi")

    echoed = [env for env in received(alice) if env["type"] == "message"][0]["data"]
    assert echoed["text"] == "hi"
    assert echoed["userId"] == "alice"

    bob = join("bob", keep=True)
    snapshot = [env for env in received(bob) if env["type"] == "roomData"][0]["data"]
    assert [(m["userId"], m["text"]) for m in snapshot["messages"]] == [("alice", "hi")]


def test_slow_reader_is_cut_off_without_stalling_the_room(clock, monotonic, received):
    hub = ChatHub(Settings(outbox_limit=6), clock=clock, monotonic=monotonic)
    alice = hub.connect()
    hub.dispatch(alice, {"type": "join", "data": {"userId": "alice"}})
    bob = hub.connect()
    hub.dispatch(bob, {"type": "join", "data": {"userId": "bob"}})
    received(bob)
    assert alice.outbox.full()

    hub.dispatch(bob, {"type": "message", "data": {"text": "anyone?"}})

    assert not alice.alive
    assert received(alice) == [None]
    assert types(received(bob)) == ["message"]

    hub.disconnect(alice)
    assert types(received(bob)) == ["rooms", "userLeft"]
    assert hub.rooms.get("general").user_count == 1
