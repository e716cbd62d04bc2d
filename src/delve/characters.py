from __future__ import annotations

import dataclasses
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping

logger = logging.getLogger(__name__)


class CharacterClass(str, Enum):
    WARRIOR = "warrior"
    MAGE = "mage"
    ROGUE = "rogue"
    HEALER = "healer"


class ItemType(str, Enum):
    WEAPON = "weapon"
    ARMOR = "armor"
    POTION = "potion"
    SCROLL = "scroll"
    ARTIFACT = "artifact"


@dataclass(frozen=True)
class CharacterStats:
    """Base statistics for a character.

    Attributes:
        health: Current hit points.
        max_health: Maximum hit points.
        mana: Current mana.
        max_mana: Maximum mana.
        attack: Attack value (no combat resolution exists yet).
        defense: Defense value.
        speed: Movement budget granted at the start of each turn.
    """

    health: int
    max_health: int
    mana: int
    max_mana: int
    attack: int
    defense: int
    speed: int

    def __post_init__(self) -> None:
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, int) or value < 0:
                raise ValueError(f"{f.name} must be a non-negative int, got {value!r}")
        if self.health > self.max_health:
            raise ValueError("health cannot exceed max_health")
        if self.mana > self.max_mana:
            raise ValueError("mana cannot exceed max_mana")

    @classmethod
    def base(cls, health: int, mana: int, attack: int, defense: int, speed: int) -> "CharacterStats":
        """Fresh stats with current values at their maximum."""
        return cls(
            health=health,
            max_health=health,
            mana=mana,
            max_mana=mana,
            attack=attack,
            defense=defense,
            speed=speed,
        )

    def to_dict(self) -> dict:
        return {
            "health": self.health,
            "maxHealth": self.max_health,
            "mana": self.mana,
            "maxMana": self.max_mana,
            "attack": self.attack,
            "defense": self.defense,
            "speed": self.speed,
        }


@dataclass
class Item:
    id: str
    name: str
    type: ItemType
    description: str = ""
    value: int = 0
    equipped: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "description": self.description,
            "value": self.value,
            "equipped": self.equipped,
        }


@dataclass
class Character:
    id: str
    name: str
    character_class: CharacterClass
    stats: CharacterStats
    level: int = 1
    inventory: List[Item] = field(default_factory=list)

    @property
    def speed(self) -> int:
        return self.stats.speed

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "class": self.character_class.value,
            "level": self.level,
            "stats": self.stats.to_dict(),
            "inventory": [i.to_dict() for i in self.inventory],
        }


BASE_STATS: Mapping[CharacterClass, CharacterStats] = {
    CharacterClass.WARRIOR: CharacterStats.base(health=100, mana=30, attack=15, defense=12, speed=8),
    CharacterClass.MAGE: CharacterStats.base(health=70, mana=100, attack=8, defense=6, speed=10),
    CharacterClass.ROGUE: CharacterStats.base(health=80, mana=50, attack=12, defense=8, speed=15),
    CharacterClass.HEALER: CharacterStats.base(health=90, mana=80, attack=6, defense=10, speed=9),
}

_missing = set(CharacterClass) - set(BASE_STATS)
if _missing:  # pragma: no cover - guards edits to the table above
    raise RuntimeError(f"BASE_STATS missing classes: {sorted(c.value for c in _missing)}")


def create_character(name: str, character_class: CharacterClass) -> Character:
    """Create a level 1 character with its class's base stats."""
    if not isinstance(character_class, CharacterClass):
        raise TypeError(f"character_class must be CharacterClass, got {character_class!r}")
    character = Character(
        id=str(uuid.uuid4()),
        name=name,
        character_class=character_class,
        stats=BASE_STATS[character_class],
    )
    logger.debug("Created %s '%s' (%s)", character_class.value, name, character.id)
    return character


def stats_table() -> Dict[str, dict]:
    """Base stats keyed by class value, for lobby/class-picker displays."""
    return {cls.value: stats.to_dict() for cls, stats in BASE_STATS.items()}


__all__ = [
    "CharacterClass",
    "ItemType",
    "CharacterStats",
    "Item",
    "Character",
    "BASE_STATS",
    "create_character",
    "stats_table",
]
