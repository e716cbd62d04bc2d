import pytest

from delve.characters import CharacterClass, create_character
from delve.dungeon import Position
from delve.models import Player
from delve.turns import TurnManager


def make_player(pid, cls=CharacterClass.WARRIOR):
    return Player(id=pid, name=pid.title(), character=create_character(pid, cls), position=Position(1, 1))


def seat(tm, *players):
    roster = {}
    for p in players:
        roster[p.id] = p
        tm.add(p, roster)
    return roster


def test_first_player_starts_with_full_budget():
    tm = TurnManager()
    a = make_player("a")
    seat(tm, a)
    assert tm.current_turn == "a"
    assert a.remaining_moves == 8
    assert tm.round == 1


def test_end_turn_rotates_and_wraps():
    tm = TurnManager()
    a, b, c = make_player("a"), make_player("b", CharacterClass.MAGE), make_player("c", CharacterClass.ROGUE)
    roster = seat(tm, a, b, c)

    assert tm.end_turn(roster) == "b"
    assert b.remaining_moves == 10
    assert tm.end_turn(roster) == "c"
    assert c.remaining_moves == 15
    assert tm.end_turn(roster) == "a"
    assert tm.round == 2


def test_full_rotation_resets_everyone():
    tm = TurnManager()
    players = [make_player(pid) for pid in ("a", "b", "c", "d")]
    roster = seat(tm, *players)
    for p in players:
        p.remaining_moves = 0
    for _ in players:
        tm.end_turn(roster)
    assert tm.current_turn == "a"
    assert all(p.remaining_moves == p.speed for p in players)


def test_round_counter_can_stay_fixed():
    tm = TurnManager(advance_round_on_wrap=False)
    roster = seat(tm, make_player("a"), make_player("b"))
    for _ in range(5):
        tm.end_turn(roster)
    assert tm.round == 1


def test_join_does_not_steal_the_turn():
    tm = TurnManager()
    roster = seat(tm, make_player("a"))
    late = make_player("late")
    roster[late.id] = late
    tm.add(late, roster)
    assert tm.current_turn == "a"
    assert tm.turn_order == ["a", "late"]


def test_removing_turn_holder_hands_turn_to_next():
    tm = TurnManager()
    a, b, c = make_player("a"), make_player("b"), make_player("c")
    roster = seat(tm, a, b, c)
    b.remaining_moves = 0
    del roster["a"]
    assert tm.remove("a", roster) == "b"
    assert b.remaining_moves == b.speed
    assert tm.turn_order == ["b", "c"]


def test_removing_last_in_order_while_on_turn_wraps():
    tm = TurnManager()
    roster = seat(tm, make_player("a"), make_player("b"), make_player("c"))
    tm.end_turn(roster)
    tm.end_turn(roster)
    del roster["c"]
    assert tm.remove("c", roster) == "a"
    assert tm.round == 2


def test_removing_someone_else_keeps_the_turn():
    tm = TurnManager()
    roster = seat(tm, make_player("a"), make_player("b"))
    del roster["b"]
    assert tm.remove("b", roster) == "a"


def test_removing_everyone_clears_turn():
    tm = TurnManager()
    roster = seat(tm, make_player("a"))
    del roster["a"]
    assert tm.remove("a", roster) is None
    assert tm.current_turn is None
    with pytest.raises(RuntimeError):
        tm.end_turn(roster)


def test_disconnected_players_are_skipped():
    tm = TurnManager()
    a, b, c = make_player("a"), make_player("b"), make_player("c")
    roster = seat(tm, a, b, c)
    b.is_connected = False
    assert tm.end_turn(roster) == "c"
    assert tm.end_turn(roster) == "a"


def test_spend_enforces_budget():
    tm = TurnManager()
    a = make_player("a")
    seat(tm, a)
    assert tm.spend(a, 5) == 3
    with pytest.raises(ValueError):
        tm.spend(a, 4)
    assert a.remaining_moves == 3


def test_turn_timeout_uses_clock():
    now = [100.0]
    tm = TurnManager(turn_timeout=30, clock=lambda: now[0])
    seat(tm, make_player("a"))
    assert not tm.is_turn_expired()
    now[0] = 129.9
    assert not tm.is_turn_expired()
    now[0] = 130.0
    assert tm.is_turn_expired()


def test_no_timeout_never_expires():
    tm = TurnManager()
    seat(tm, make_player("a"))
    assert not tm.is_turn_expired(now=1e12)
    with pytest.raises(ValueError):
        TurnManager(turn_timeout=0)


def test_newcomer_takes_turn_parked_on_disconnected_player():
    tm = TurnManager()
    a = make_player("a")
    roster = seat(tm, a)
    a.is_connected = False

    b = make_player("b", CharacterClass.MAGE)
    roster[b.id] = b
    assert tm.add(b, roster) is True
    assert tm.current_turn == "b"
    assert b.remaining_moves == 10
    assert tm.end_turn(roster) == "b"


def test_newcomer_does_not_take_turn_from_connected_player():
    tm = TurnManager()
    roster = seat(tm, make_player("a"))
    b = make_player("b")
    roster[b.id] = b
    assert tm.add(b, roster) is False
    assert tm.current_turn == "a"
