import random
import threading

import pytest

from delve.characters import CharacterClass
from delve.config import SessionConfig
from delve.errors import InvalidPayloadError, RoomFullError, RoomNotFoundError, UnsupportedActionError
from delve.models import ActionType, GameAction, MoveRejection
from delve.server import LocalTransport, SessionHost
from delve.server.host import ACTION_REJECTED, CHAT_MESSAGE, ROOM_CLOSED, ROOM_ID_LENGTH, ROOM_STATE


@pytest.fixture
def transport():
    return LocalTransport()


@pytest.fixture
def host(transport):
    ids = iter(["ROOM01", "ROOM02", "ROOM03"])
    return SessionHost(transport, id_factory=lambda: next(ids))


def test_create_room_seats_host_and_broadcasts(host, transport):
    room_id, player = host.create_room("Epic Adventure", "Aria", CharacterClass.WARRIOR)
    assert room_id == "ROOM01"
    assert player.is_host

    state = transport.last(ROOM_STATE)
    assert state.target == room_id
    assert state.payload["currentTurn"] == player.id
    assert state.payload["eventSeq"] > 0
    chat = transport.last(CHAT_MESSAGE).payload
    assert chat["type"] == "system"
    assert "Aria" in chat["message"]


def test_random_room_ids_are_six_uppercase_chars():
    host = SessionHost(LocalTransport(), rng=random.Random(7))
    room_id, _ = host.create_room("R", "P")
    assert len(room_id) == ROOM_ID_LENGTH
    assert room_id == room_id.upper() and room_id.isalnum()


def test_duplicate_ids_are_retried(transport):
    ids = iter(["SAME01", "SAME01", "OTHER1"])
    host = SessionHost(transport, id_factory=lambda: next(ids))
    first, _ = host.create_room("A", "a")
    second, _ = host.create_room("B", "b")
    assert (first, second) == ("SAME01", "OTHER1")


def test_dispatch_create_join_and_move(host, transport):
    created = host.dispatch("create-room", {"roomName": "Quest", "playerName": "Aria"})
    joined = host.dispatch(
        "join-room", {"roomId": "room01", "playerName": "Gandalf", "characterClass": "mage"}
    )
    assert joined["roomId"] == created["roomId"] == "ROOM01"

    out = host.dispatch(
        "game-action",
        {"roomId": "ROOM01", "type": "move", "playerId": created["playerId"], "data": {"x": 6, "y": 1}},
    )
    assert out == {"roomId": "ROOM01", "accepted": True, "reason": None, "remainingMoves": 3}
    assert transport.last(CHAT_MESSAGE).payload["message"] == "moved to (6, 1)"

    out = host.dispatch(
        "game-action", {"roomId": "ROOM01", "type": "end_turn", "playerId": created["playerId"]}
    )
    assert out["accepted"] and out["currentTurn"] == joined["playerId"]
    assert transport.last(CHAT_MESSAGE).payload["message"] == "Gandalf's turn"


def test_rejected_move_is_sent_to_the_player_only(host, transport):
    room_id, _ = host.create_room("Quest", "Aria")
    guest = host.join_room(room_id, "Shade", CharacterClass.ROGUE)
    result = host.handle_action(room_id, GameAction(ActionType.MOVE, guest.id, {"x": 2, "y": 1}))
    assert result.reason is MoveRejection.OUT_OF_TURN

    notice = transport.last(ACTION_REJECTED)
    assert notice.target == guest.id
    assert not notice.broadcast
    assert notice.payload == {"type": "move", "reason": "out_of_turn"}


def test_invalid_payloads_raise(host):
    with pytest.raises(InvalidPayloadError):
        host.dispatch("create-room", {"roomName": "Quest"})
    with pytest.raises(InvalidPayloadError):
        host.dispatch("create-room", {"roomName": "Q", "playerName": "A", "characterClass": "bard"})
    with pytest.raises(InvalidPayloadError):
        host.dispatch("teleport", {})


def test_move_without_coordinates_rejected(host):
    room_id, player = host.create_room("Quest", "Aria")
    with pytest.raises(InvalidPayloadError):
        host.handle_action(room_id, GameAction(ActionType.MOVE, player.id, {"x": 1}))


def test_actions_without_rules_are_unsupported(host):
    room_id, player = host.create_room("Quest", "Aria")
    with pytest.raises(UnsupportedActionError):
        host.handle_action(room_id, GameAction(ActionType.ATTACK, player.id))


def test_unknown_room(host):
    with pytest.raises(RoomNotFoundError):
        host.join_room("NOPE00", "Aria")


def test_room_capacity(host):
    room_id, _ = host.create_room("Quest", "One")
    for name in ("Two", "Three", "Four"):
        host.join_room(room_id, name)
    with pytest.raises(RoomFullError):
        host.join_room(room_id, "Five")


def test_chat_messages_are_logged_and_broadcast(host, transport):
    room_id, player = host.create_room("Quest", "Aria")
    out = host.dispatch("chat-message", {"roomId": room_id, "playerId": player.id, "message": "  hi all "})
    assert out["message"] == "hi all"
    assert out["playerName"] == "Aria"
    assert out["type"] == "chat"
    assert host.room(room_id).chat.messages()[-1].message == "hi all"
    assert transport.last(CHAT_MESSAGE).payload["id"] == out["id"]


def test_leave_hands_off_turn_and_closes_empty_room(host, transport):
    room_id, a = host.create_room("Quest", "Aria")
    b = host.join_room(room_id, "Gandalf", CharacterClass.MAGE)

    host.dispatch("leave-room", {"roomId": room_id, "playerId": a.id})
    assert host.snapshot(room_id).current_turn == b.id
    assert any(m.message == "Aria has left the dungeon." for m in host.room(room_id).chat.messages())

    host.leave_room(room_id, b.id)
    assert room_id not in host.room_ids()
    assert transport.last(ROOM_CLOSED).payload == {"roomId": room_id}


def test_keep_policy_room_closes_when_all_disconnected(transport):
    host = SessionHost(transport, SessionConfig(disconnect_policy="keep"))
    room_id, a = host.create_room("Quest", "Aria")
    b = host.join_room(room_id, "Shade")
    host.leave_room(room_id, a.id)
    snap = host.snapshot(room_id)
    assert snap.current_turn == b.id
    assert len(snap.players) == 2
    host.leave_room(room_id, b.id)
    assert room_id not in host.room_ids()


def test_expire_idle_turns(transport):
    now = [0.0]
    host = SessionHost(transport, SessionConfig(turn_timeout_seconds=5), clock=lambda: now[0])
    room_id, _ = host.create_room("Quest", "Aria")
    guest = host.join_room(room_id, "Shade")
    assert host.expire_idle_turns() == {}
    now[0] = 6.0
    expired = host.expire_idle_turns()
    assert expired[room_id].current_turn == guest.id


def test_join_racing_a_closing_leave_never_lands_in_a_dead_room(host, transport):
    room_id, a = host.create_room("Quest", "Aria")
    room = host.room(room_id)
    outcome = {}

    def late_join():
        try:
            outcome["player"] = host.join_room(room_id, "Late")
        except RoomNotFoundError as exc:
            outcome["error"] = exc

    with room.lock:
        worker = threading.Thread(target=late_join)
        worker.start()
        # The worker blocks on the room lock (or finds the room gone) while
        # the last player leaves and the room is closed.
        host.leave_room(room_id, a.id)
    worker.join(timeout=5)

    assert not worker.is_alive()
    assert "player" not in outcome
    assert isinstance(outcome["error"], RoomNotFoundError)
    assert room.closed
    assert room_id not in host.room_ids()
    assert len(transport.events(ROOM_CLOSED)) == 1


def test_stale_room_handle_rejects_actions_after_close(host):
    room_id, a = host.create_room("Quest", "Aria")
    host.close_room(room_id)
    with pytest.raises(RoomNotFoundError):
        host.handle_action(room_id, GameAction(ActionType.END_TURN, a.id))
    with pytest.raises(RoomNotFoundError):
        host.close_room(room_id)


def test_concurrent_moves_are_serialized_per_room(host):
    room_id, warrior = host.create_room("Quest", "Aria", CharacterClass.WARRIOR)
    host.join_room(room_id, "Gandalf", CharacterClass.MAGE)
    # Each target is 5 steps from the entrance and at least 4 from the others,
    # so the warrior can afford exactly one of them
    targets = [(6, 1), (1, 6), (4, 3)]
    results = []
    start = threading.Barrier(len(targets))

    def submit(x, y):
        start.wait()
        results.append(host.handle_action(room_id, GameAction(ActionType.MOVE, warrior.id, {"x": x, "y": y})))

    workers = [threading.Thread(target=submit, args=t) for t in targets]
    for w in workers:
        w.start()
    for w in workers:
        w.join(timeout=5)

    accepted = [r for r in results if r.accepted]
    assert len(results) == len(targets)
    assert len(accepted) == 1
    assert all(r.reason is MoveRejection.INSUFFICIENT_BUDGET for r in results if not r.accepted)
    snap = host.snapshot(room_id)
    assert snap.player(warrior.id).position == accepted[0].position
    assert snap.player(warrior.id).remaining_moves == 3


def test_room_state_pushes_carry_increasing_sequence(host, transport):
    room_id, player = host.create_room("Quest", "Aria")
    host.handle_action(room_id, GameAction(ActionType.MOVE, player.id, {"x": 2, "y": 1}))
    host.handle_action(room_id, GameAction(ActionType.END_TURN, player.id))
    seqs = [d.payload["eventSeq"] for d in transport.events(ROOM_STATE, room_id)]
    assert len(seqs) == 3
    assert seqs == sorted(seqs) and len(set(seqs)) == 3


def test_fractional_move_coordinates_rejected_as_payload_errors(host):
    room_id, player = host.create_room("Quest", "Aria")
    with pytest.raises(InvalidPayloadError):
        host.handle_action(room_id, GameAction(ActionType.MOVE, player.id, {"x": 1.5, "y": 1}))
    assert host.snapshot(room_id).player(player.id).remaining_moves == 8
