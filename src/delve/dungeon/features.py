from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..characters import CharacterStats
from .tiles import Position


class MonsterType(str, Enum):
    GOBLIN = "goblin"
    ORC = "orc"
    SKELETON = "skeleton"
    DRAGON = "dragon"


class TreasureType(str, Enum):
    GOLD = "gold"
    WEAPON = "weapon"
    ARMOR = "armor"
    POTION = "potion"
    ARTIFACT = "artifact"


@dataclass(frozen=True)
class Monster:
    """Static monster marker placed on the map.

    No combat exists in this engine; monsters are map data only.
    """

    id: str
    name: str
    position: Position
    monster_type: MonsterType
    stats: Optional[CharacterStats] = None
    is_alive: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "position": self.position.to_dict(),
            "type": self.monster_type.value,
            "isAlive": self.is_alive,
        }


@dataclass(frozen=True)
class Treasure:
    id: str
    name: str
    position: Position
    treasure_type: TreasureType
    value: int = 0
    is_collected: bool = False

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError("treasure value cannot be negative")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "position": self.position.to_dict(),
            "type": self.treasure_type.value,
            "value": self.value,
            "isCollected": self.is_collected,
        }


__all__ = ["MonsterType", "TreasureType", "Monster", "Treasure"]
