from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .characters import Character
from .dungeon.tiles import Position


class GamePhase(str, Enum):
    LOBBY = "lobby"
    SETUP = "setup"
    PLAYING = "playing"
    COMBAT = "combat"
    FINISHED = "finished"


class ActionType(str, Enum):
    MOVE = "move"
    ATTACK = "attack"
    CAST_SPELL = "cast_spell"
    USE_ITEM = "use_item"
    OPEN_DOOR = "open_door"
    COLLECT_TREASURE = "collect_treasure"
    END_TURN = "end_turn"


class MessageType(str, Enum):
    CHAT = "chat"
    SYSTEM = "system"
    COMBAT = "combat"


class MoveRejection(str, Enum):
    """Why an action was turned down. Rejections never change state."""

    OUT_OF_TURN = "out_of_turn"
    UNREACHABLE = "unreachable"
    NO_MOVEMENT = "no_movement"
    INSUFFICIENT_BUDGET = "insufficient_budget"


@dataclass
class Player:
    """A participant in a session.

    remaining_moves is the per-turn movement budget: reset to the character's
    speed when the player's turn begins and reduced by the Manhattan distance
    of every accepted move.
    """

    id: str
    name: str
    character: Character
    position: Position
    is_host: bool = False
    is_connected: bool = True
    remaining_moves: int = 0

    @property
    def speed(self) -> int:
        return self.character.stats.speed

    def reset_moves(self) -> int:
        self.remaining_moves = self.speed
        return self.remaining_moves

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "character": self.character.to_dict(),
            "position": self.position.to_dict(),
            "isHost": self.is_host,
            "isConnected": self.is_connected,
            "remainingMoves": self.remaining_moves,
        }


@dataclass(frozen=True)
class MoveResult:
    """Outcome of a move attempt.

    position / remaining_moves describe the mover after the call; both are
    None/0 when the player id is unknown.
    """

    accepted: bool
    position: Optional[Position]
    remaining_moves: int
    distance: int = 0
    reason: Optional[MoveRejection] = None

    def __bool__(self) -> bool:
        return self.accepted


@dataclass(frozen=True)
class TurnResult:
    accepted: bool
    current_turn: Optional[str]
    round: int
    reason: Optional[MoveRejection] = None

    def __bool__(self) -> bool:
        return self.accepted


@dataclass(frozen=True)
class GameAction:
    type: ActionType
    player_id: str
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ChatMessage:
    id: str
    player_id: str
    player_name: str
    message: str
    timestamp: int
    type: MessageType = MessageType.CHAT

    @classmethod
    def create(
        cls,
        player_id: str,
        player_name: str,
        message: str,
        type: MessageType = MessageType.CHAT,
        timestamp: Optional[int] = None,
    ) -> "ChatMessage":
        ts = int(time.time() * 1000) if timestamp is None else timestamp
        return cls(
            id=str(uuid.uuid4()),
            player_id=player_id,
            player_name=player_name,
            message=message,
            timestamp=ts,
            type=type,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "playerId": self.player_id,
            "playerName": self.player_name,
            "message": self.message,
            "timestamp": self.timestamp,
            "type": self.type.value,
        }


__all__ = [
    "GamePhase",
    "ActionType",
    "MessageType",
    "MoveRejection",
    "Player",
    "MoveResult",
    "TurnResult",
    "GameAction",
    "ChatMessage",
]
