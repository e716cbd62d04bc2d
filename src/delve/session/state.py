from __future__ import annotations

import logging
import time
import uuid
from typing import Callable, Dict, FrozenSet, List, Optional

from ..characters import CharacterClass, create_character
from ..config import DISCONNECT_KEEP, SessionConfig
from ..dungeon.generator import DungeonGenerator
from ..dungeon.map import Dungeon
from ..dungeon.tiles import Position
from ..errors import PlayerNotFoundError, RoomFullError
from ..events import EventBus, EventType
from ..fov.visibility import VisibilityEngine
from ..models import GamePhase, MoveRejection, MoveResult, Player, TurnResult
from ..turns import TurnManager
from .snapshot import PlayerView, SessionSnapshot

logger = logging.getLogger(__name__)


class SessionState:
    """Aggregate root for one dungeon session.

    Owns the roster, the dungeon, the turn manager and the fog of war. All
    mutation goes through ``add_player``, ``remove_player``,
    ``mark_disconnected``, ``attempt_move`` and ``end_turn``; callers that
    share a session between threads must serialize those calls (see
    ``delve.server.host.SessionHost``).

    Move and end-turn requests that break the rules are rejected without
    touching state and report a MoveRejection reason instead of raising.
    After every accepted change the whole roster's visibility is recomputed
    and a fresh snapshot is published on the event bus.
    """

    def __init__(
        self,
        session_id: str,
        name: str,
        *,
        config: Optional[SessionConfig] = None,
        dungeon: Optional[Dungeon] = None,
        visibility: Optional[VisibilityEngine] = None,
        turns: Optional[TurnManager] = None,
        bus: Optional[EventBus] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or SessionConfig()
        self.config.validate()
        self.id = session_id
        self.name = name
        self.dungeon = dungeon or DungeonGenerator(self.config.board_size).generate()
        self.visibility = visibility or VisibilityEngine(
            self.config.vision_radius, sticky=self.config.sticky_fog
        )
        self.turns = turns or TurnManager(
            advance_round_on_wrap=self.config.advance_round_on_wrap,
            turn_timeout=self.config.turn_timeout_seconds,
            clock=clock,
        )
        self.bus = bus or EventBus()
        self.phase = GamePhase.PLAYING
        self._players: Dict[str, Player] = {}
        logger.info("Session %s (%s) created with %r", self.id, self.name, self.dungeon)

    # ------------------------------------------------------------------ roster
    @property
    def players(self) -> List[Player]:
        """Players in turn order."""
        return [self._players[pid] for pid in self.turns.turn_order]

    @property
    def max_players(self) -> int:
        return self.config.max_players

    @property
    def current_turn(self) -> Optional[str]:
        return self.turns.current_turn

    @property
    def round(self) -> int:
        return self.turns.round

    @property
    def current_player(self) -> Optional[Player]:
        if self.turns.current_turn is None:
            return None
        return self._players.get(self.turns.current_turn)

    def player(self, player_id: str) -> Player:
        try:
            return self._players[player_id]
        except KeyError:
            raise PlayerNotFoundError(f"Player {player_id} is not in session {self.id}") from None

    def has_player(self, player_id: str) -> bool:
        return player_id in self._players

    def is_full(self) -> bool:
        return len(self._players) >= self.config.max_players

    def add_player(
        self,
        name: str,
        character_class: CharacterClass,
        *,
        is_host: bool = False,
        player_id: Optional[str] = None,
    ) -> Player:
        """Create a character for the participant and place them on the entrance."""
        if self.is_full():
            if self.config.enforce_capacity:
                raise RoomFullError(f"Session {self.id} is full ({self.config.max_players} players)")
            logger.warning(
                "Session %s over capacity: %d/%d players; join allowed by policy",
                self.id,
                len(self._players) + 1,
                self.config.max_players,
            )
        player_id = player_id or str(uuid.uuid4())
        if player_id in self._players:
            raise ValueError(f"player id {player_id} already in session")
        character = create_character(name, character_class)
        player = Player(
            id=player_id,
            name=name,
            character=character,
            position=self.dungeon.entrance or Position(1, 1),
            is_host=is_host,
            remaining_moves=character.stats.speed,
        )
        self._players[player.id] = player
        had_turn_holder = self.turns.current_turn is not None
        took_turn = self.turns.add(player, self._players)
        if self.phase is GamePhase.FINISHED:
            self.phase = GamePhase.PLAYING
        logger.info("Player '%s' (%s) joined session %s", name, character_class.value, self.id)

        self._refresh_visibility()
        self.bus.publish(EventType.PLAYER_JOINED, {"sessionId": self.id, "player": player.to_dict()})
        if took_turn and had_turn_holder:
            self._publish_turn_changed()
        self._publish_snapshot()
        return player

    def remove_player(self, player_id: str) -> Optional[str]:
        """Remove a player. Returns who is on turn afterwards (None if empty)."""
        player = self.player(player_id)
        held_turn = self.turns.current_turn == player_id
        del self._players[player_id]
        on_turn = self.turns.remove(player_id, self._players)
        logger.info("Player '%s' left session %s", player.name, self.id)
        if not self._players:
            self.phase = GamePhase.FINISHED
            logger.info("Session %s has no players left", self.id)

        self._refresh_visibility()
        self.bus.publish(EventType.PLAYER_LEFT, {"sessionId": self.id, "playerId": player_id})
        if held_turn and on_turn is not None:
            self._publish_turn_changed()
        self._publish_snapshot()
        return on_turn

    def mark_disconnected(self, player_id: str) -> Optional[str]:
        """Apply the configured disconnect policy to a departing player.

        "remove" drops the player; "keep" leaves them on the roster with
        is_connected=False and passes the turn on if they held it.
        """
        if self.config.disconnect_policy != DISCONNECT_KEEP:
            return self.remove_player(player_id)
        player = self.player(player_id)
        player.is_connected = False
        logger.info("Player '%s' disconnected from session %s (kept on roster)", player.name, self.id)
        if self.turns.current_turn == player_id:
            self.end_turn()
        else:
            self._publish_snapshot()
        return self.turns.current_turn

    # ---------------------------------------------------------------- movement
    def attempt_move(self, player_id: str, target: Position) -> MoveResult:
        """Try to move the current player to target.

        Checks, in order: the player holds the turn; the target is in bounds
        and walkable; the Manhattan distance is positive and within the
        remaining budget. Any failure leaves the session untouched.
        """
        player = self._players.get(player_id)
        if player is None or self.phase is not GamePhase.PLAYING or player_id != self.turns.current_turn:
            return self._reject(player, target, MoveRejection.OUT_OF_TURN)

        if not self.dungeon.is_walkable(target.x, target.y):
            return self._reject(player, target, MoveRejection.UNREACHABLE)

        distance = player.position.manhattan(target)
        if distance == 0:
            return self._reject(player, target, MoveRejection.NO_MOVEMENT)
        if distance > player.remaining_moves:
            return self._reject(player, target, MoveRejection.INSUFFICIENT_BUDGET, distance)

        origin = player.position
        player.position = target
        self.turns.spend(player, distance)
        logger.debug(
            "Player %s moved %s -> %s (distance=%d, remaining=%d)",
            player.id,
            origin,
            target,
            distance,
            player.remaining_moves,
        )

        self._refresh_visibility()
        self.bus.publish(
            EventType.PLAYER_MOVED,
            {
                "sessionId": self.id,
                "playerId": player.id,
                "from": origin.to_dict(),
                "to": target.to_dict(),
                "distance": distance,
                "remainingMoves": player.remaining_moves,
            },
        )
        self._publish_snapshot()
        return MoveResult(
            accepted=True,
            position=target,
            remaining_moves=player.remaining_moves,
            distance=distance,
        )

    def reachable_targets(self, player_id: str) -> FrozenSet[Position]:
        """Tiles the player could move to right now (empty when not on turn)."""
        player = self._players.get(player_id)
        if player is None or player_id != self.turns.current_turn:
            return frozenset()
        budget = player.remaining_moves
        px, py = player.position.x, player.position.y
        out = set()
        for dy in range(-budget, budget + 1):
            span = budget - abs(dy)
            for dx in range(-span, span + 1):
                if dx == 0 and dy == 0:
                    continue
                if self.dungeon.is_walkable(px + dx, py + dy):
                    out.add(Position(px + dx, py + dy))
        return frozenset(out)

    # ------------------------------------------------------------------- turns
    def end_turn(self, player_id: Optional[str] = None) -> TurnResult:
        """Pass the turn to the next player and reset their movement budget.

        When player_id is given it must be the player on turn; omit it for
        host-forced rotation (e.g. idle timeouts).
        """
        if self.turns.current_turn is None:
            return TurnResult(False, None, self.turns.round, MoveRejection.OUT_OF_TURN)
        if player_id is not None and player_id != self.turns.current_turn:
            logger.debug("Rejected end_turn from %s: %s holds the turn", player_id, self.turns.current_turn)
            return TurnResult(False, self.turns.current_turn, self.turns.round, MoveRejection.OUT_OF_TURN)

        self.turns.end_turn(self._players)
        self._publish_turn_changed()
        self._publish_snapshot()
        return TurnResult(True, self.turns.current_turn, self.turns.round)

    def expire_idle_turn(self, now: Optional[float] = None) -> Optional[TurnResult]:
        """Force end_turn when the configured turn timeout has elapsed."""
        if not self.turns.is_turn_expired(now):
            return None
        logger.info("Turn timeout for %s in session %s", self.turns.current_turn, self.id)
        return self.end_turn()

    # ---------------------------------------------------------------- snapshot
    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            id=self.id,
            name=self.name,
            phase=self.phase,
            round=self.turns.round,
            current_turn=self.turns.current_turn,
            max_players=self.config.max_players,
            players=tuple(PlayerView.of(p) for p in self.players),
            width=self.dungeon.width,
            height=self.dungeon.height,
            layout=tuple(t.type for t in self.dungeon.tiles()),
            visible=self.visibility.visible,
            lit=frozenset(t.position for t in self.dungeon.tiles() if t.is_visible),
            monsters=tuple(self.dungeon.monsters),
            treasures=tuple(self.dungeon.treasures),
        )

    # ---------------------------------------------------------------- internal
    def _refresh_visibility(self) -> FrozenSet[Position]:
        return self.visibility.apply(self.dungeon, [p.position for p in self._players.values()])

    def _reject(
        self,
        player: Optional[Player],
        target: Position,
        reason: MoveRejection,
        distance: int = 0,
    ) -> MoveResult:
        logger.debug(
            "Rejected move by %s to %s: %s",
            player.id if player else "<unknown>",
            target,
            reason.value,
        )
        self.bus.publish(
            EventType.MOVE_REJECTED,
            {
                "sessionId": self.id,
                "playerId": player.id if player else None,
                "target": target.to_dict(),
                "reason": reason.value,
            },
        )
        return MoveResult(
            accepted=False,
            position=player.position if player else None,
            remaining_moves=player.remaining_moves if player else 0,
            distance=distance,
            reason=reason,
        )

    def _publish_turn_changed(self) -> None:
        current = self.current_player
        self.bus.publish(
            EventType.TURN_CHANGED,
            {
                "sessionId": self.id,
                "currentTurn": self.turns.current_turn,
                "playerName": current.name if current else None,
                "remainingMoves": current.remaining_moves if current else 0,
                "round": self.turns.round,
            },
        )

    def _publish_snapshot(self) -> None:
        self.bus.publish(EventType.SNAPSHOT, {"sessionId": self.id, "snapshot": self.snapshot()})


__all__ = ["SessionState"]
