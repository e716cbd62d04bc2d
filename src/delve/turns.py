from __future__ import annotations

import logging
import time
from typing import Callable, List, Mapping, Optional

from .models import Player

logger = logging.getLogger(__name__)


class TurnManager:
    """Fixed-order turn rotation with a per-turn movement budget.

    Features:
    - Turn order is join order; end_turn() moves to the next id and wraps.
    - The incoming player's remaining_moves is reset to their speed.
    - The round counter starts at 1 and (optionally) increments on wrap.
    - Removing the player who holds the turn hands it to the next id.
    - An optional idle timeout lets the host force end_turn().

    Usage:
        tm = TurnManager()
        tm.add(host, players)
        tm.add(guest, players)
        tm.end_turn(players)   # -> guest.id, guest.remaining_moves == guest.speed
    """

    def __init__(
        self,
        *,
        advance_round_on_wrap: bool = True,
        turn_timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if turn_timeout is not None and turn_timeout <= 0:
            raise ValueError("turn_timeout must be > 0 when set")
        self.advance_round_on_wrap = advance_round_on_wrap
        self.turn_timeout = turn_timeout
        self._clock = clock
        self._order: List[str] = []
        self.current_turn: Optional[str] = None
        self.round: int = 1
        self.turn_started_at: Optional[float] = None

    # --------------- Public API ---------------

    @property
    def turn_order(self) -> List[str]:
        return list(self._order)

    def add(self, player: Player, players: Mapping[str, Player]) -> bool:
        """Append a player to the turn order.

        The first player starts the game. A connected newcomer also takes the
        turn when it is parked on a disconnected player, which happens once
        everyone on the roster has dropped. Returns True when the turn moved.
        """
        if player.id in self._order:
            raise ValueError(f"player {player.id} already in turn order")
        self._order.append(player.id)
        logger.debug("Added %s to turn order (size=%d)", player.id, len(self._order))
        holder = players.get(self.current_turn) if self.current_turn is not None else None
        if holder is None or (not holder.is_connected and player.is_connected):
            self._begin_turn(player.id, players)
            return True
        return False

    def remove(self, player_id: str, players: Mapping[str, Player]) -> Optional[str]:
        """Drop a player from the turn order.

        If they held the turn, the next player in order takes it. Returns the
        id on turn afterwards (None once the order is empty).
        """
        if player_id not in self._order:
            logger.debug("Attempted to remove %s but it was not in turn order", player_id)
            return self.current_turn
        idx = self._order.index(player_id)
        self._order.remove(player_id)
        if not self._order:
            self.current_turn = None
            self.turn_started_at = None
            logger.debug("Turn order empty after removing %s", player_id)
            return None
        if self.current_turn == player_id:
            # The player after the leaver now sits at idx
            self._advance(idx - 1, players)
        return self.current_turn

    def end_turn(self, players: Mapping[str, Player]) -> str:
        """Advance to the next player in order and reset their budget.

        Disconnected players (kept on the roster by the "keep" disconnect
        policy) are passed over while any connected player remains.
        """
        if not self._order or self.current_turn is None:
            raise RuntimeError("end_turn called with an empty turn order")
        self._advance(self._order.index(self.current_turn), players)
        return self.current_turn

    def spend(self, player: Player, distance: int) -> int:
        """Deduct distance from the player's budget and return what is left."""
        if distance < 0:
            raise ValueError("distance cannot be negative")
        if distance > player.remaining_moves:
            raise ValueError(
                f"distance {distance} exceeds remaining moves {player.remaining_moves} for {player.id}"
            )
        player.remaining_moves -= distance
        return player.remaining_moves

    def is_turn_expired(self, now: Optional[float] = None) -> bool:
        if self.turn_timeout is None or self.turn_started_at is None:
            return False
        now = self._clock() if now is None else now
        return now - self.turn_started_at >= self.turn_timeout

    # --------------- Internal helpers ---------------

    def _advance(self, idx: int, players: Mapping[str, Player]) -> None:
        """Hand the turn to the first eligible id after position idx."""
        any_connected = any(players[pid].is_connected for pid in self._order if pid in players)
        for _ in range(len(self._order)):
            idx += 1
            if idx >= len(self._order):
                idx = 0
                self._wrap()
            candidate = players.get(self._order[idx])
            if not any_connected or (candidate is not None and candidate.is_connected):
                break
            logger.debug("Skipping disconnected player %s", self._order[idx])
        self._begin_turn(self._order[idx], players)

    def _wrap(self) -> None:
        if self.advance_round_on_wrap:
            self.round += 1
            logger.debug("Turn order wrapped; round is now %d", self.round)

    def _begin_turn(self, player_id: str, players: Mapping[str, Player]) -> None:
        self.current_turn = player_id
        self.turn_started_at = self._clock()
        player = players.get(player_id)
        if player is None:
            raise KeyError(f"player {player_id} on turn is missing from roster")
        player.reset_moves()
        logger.info("Round %d: %s's turn (%d moves)", self.round, player.name, player.remaining_moves)


__all__ = ["TurnManager"]
