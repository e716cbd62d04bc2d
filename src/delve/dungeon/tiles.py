from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TileType(str, Enum):
    """Dungeon tile types.

    - WALL: Non-walkable obstacle
    - FLOOR: Walkable open tile
    - DOOR: Walkable doorway (no open/close state in this engine)
    - ENTRANCE: Walkable spawn tile
    - EXIT: Walkable exit tile
    """

    FLOOR = "floor"
    WALL = "wall"
    DOOR = "door"
    ENTRANCE = "entrance"
    EXIT = "exit"

    @property
    def is_walkable(self) -> bool:
        return self is not TileType.WALL

    @property
    def glyph(self) -> str:
        """A single-character visualization useful for logs/debug."""
        return {
            TileType.FLOOR: ".",
            TileType.WALL: "#",
            TileType.DOOR: "+",
            TileType.ENTRANCE: "<",
            TileType.EXIT: ">",
        }[self]


@dataclass(frozen=True)
class Position:
    """Integer grid coordinate; (0,0) is top-left, x grows right, y grows down."""

    x: int
    y: int

    def __post_init__(self) -> None:
        for name in ("x", "y"):
            value = getattr(self, name)
            # bool is an int subclass but never a coordinate
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"Position.{name} must be an int, got {value!r}")

    def manhattan(self, other: "Position") -> int:
        return abs(self.x - other.x) + abs(self.y - other.y)

    def distance_sq(self, other: "Position") -> int:
        dx = self.x - other.x
        dy = self.y - other.y
        return dx * dx + dy * dy

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


@dataclass
class Tile:
    """One cell of the dungeon.

    type and is_walkable are fixed at generation; is_visible is rewritten on
    every visibility pass.
    """

    x: int
    y: int
    type: TileType
    is_walkable: bool
    is_visible: bool = False

    @property
    def position(self) -> Position:
        return Position(self.x, self.y)

    def set_type(self, tile_type: TileType) -> None:
        self.type = tile_type
        self.is_walkable = tile_type.is_walkable

    def to_dict(self) -> dict:
        return {
            "x": self.x,
            "y": self.y,
            "type": self.type.value,
            "isWalkable": self.is_walkable,
            "isVisible": self.is_visible,
        }


__all__ = ["TileType", "Position", "Tile"]
