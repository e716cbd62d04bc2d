from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple

from ..characters import CharacterClass
from ..dungeon.features import Monster, Treasure
from ..dungeon.tiles import Position, TileType
from ..models import GamePhase, Player


@dataclass(frozen=True)
class PlayerView:
    """Immutable copy of a player's state at snapshot time."""

    id: str
    name: str
    character_class: CharacterClass
    position: Position
    speed: int
    remaining_moves: int
    is_host: bool
    is_connected: bool
    character: dict = field(compare=False)

    @classmethod
    def of(cls, player: Player) -> "PlayerView":
        return cls(
            id=player.id,
            name=player.name,
            character_class=player.character.character_class,
            position=player.position,
            speed=player.speed,
            remaining_moves=player.remaining_moves,
            is_host=player.is_host,
            is_connected=player.is_connected,
            character=player.character.to_dict(),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "character": self.character,
            "position": self.position.to_dict(),
            "isHost": self.is_host,
            "isConnected": self.is_connected,
            "remainingMoves": self.remaining_moves,
        }


@dataclass(frozen=True)
class SessionSnapshot:
    """
    Read-only view of a session handed to presentation and transport layers.

    ``visible`` holds the tiles inside some player's vision right now; ``lit``
    holds the tiles whose ``is_visible`` flag is set (identical unless the
    session uses sticky fog).
    """

    id: str
    name: str
    phase: GamePhase
    round: int
    current_turn: Optional[str]
    max_players: int
    players: Tuple[PlayerView, ...]
    width: int
    height: int
    layout: Tuple[TileType, ...]
    visible: FrozenSet[Position]
    lit: FrozenSet[Position]
    monsters: Tuple[Monster, ...] = ()
    treasures: Tuple[Treasure, ...] = ()

    @property
    def turn_order(self) -> Tuple[str, ...]:
        return tuple(p.id for p in self.players)

    def player(self, player_id: str) -> Optional[PlayerView]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    @property
    def current_player(self) -> Optional[PlayerView]:
        if self.current_turn is None:
            return None
        return self.player(self.current_turn)

    def tile_type(self, x: int, y: int) -> Optional[TileType]:
        if not (0 <= x < self.width and 0 <= y < self.height):
            return None
        return self.layout[y * self.width + x]

    def is_visible(self, x: int, y: int) -> bool:
        return Position(x, y) in self.lit

    def to_dict(self) -> dict:
        """Wire shape used by the transport (camelCase keys)."""
        tiles = []
        for y in range(self.height):
            row = []
            for x in range(self.width):
                t = self.layout[y * self.width + x]
                row.append(
                    {
                        "x": x,
                        "y": y,
                        "type": t.value,
                        "isWalkable": t.is_walkable,
                        "isVisible": Position(x, y) in self.lit,
                    }
                )
            tiles.append(row)
        return {
            "id": self.id,
            "name": self.name,
            "players": [p.to_dict() for p in self.players],
            "maxPlayers": self.max_players,
            "currentTurn": self.current_turn,
            "turnOrder": list(self.turn_order),
            "gameState": {
                "phase": self.phase.value,
                "currentPlayer": self.current_turn,
                "round": self.round,
                "gameBoard": {"width": self.width, "height": self.height, "tiles": tiles},
                "monsters": [m.to_dict() for m in self.monsters],
                "treasures": [t.to_dict() for t in self.treasures],
            },
        }


__all__ = ["PlayerView", "SessionSnapshot"]
