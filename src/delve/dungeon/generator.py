from __future__ import annotations

import logging
from typing import Tuple

from .features import Monster, MonsterType, Treasure, TreasureType
from .map import Dungeon
from .tiles import Position, TileType

logger = logging.getLogger(__name__)


BOARD_SIZE = 20

# Hand-authored obstacle clusters (x, y)
INTERIOR_WALLS: Tuple[Tuple[int, int], ...] = (
    (3, 3), (3, 4), (3, 5),
    (7, 7), (8, 7), (9, 7),
    (11, 3), (11, 4), (11, 5),
    (5, 10), (6, 10), (7, 10),
)

MONSTER_MARKERS: Tuple[Tuple[int, int, MonsterType], ...] = (
    (5, 5, MonsterType.GOBLIN),
    (10, 8, MonsterType.ORC),
    (3, 11, MonsterType.SKELETON),
)

TREASURE_MARKERS: Tuple[Tuple[int, int, TreasureType, int], ...] = (
    (6, 3, TreasureType.GOLD, 50),
    (12, 6, TreasureType.POTION, 25),
    (4, 13, TreasureType.WEAPON, 100),
)


class DungeonGenerator:
    """Deterministic fixed-layout dungeon generator.

    No randomness is involved: the same board size always yields the same
    grid. The outer ring is wall, the interior wall table is stamped on top,
    the entrance sits at (1,1) and the exit at (N-2,N-2).
    """

    def __init__(self, board_size: int = BOARD_SIZE) -> None:
        if board_size < 4:
            raise ValueError("board_size must be >= 4 to fit entrance and exit inside the walls")
        self.board_size = board_size

    def generate(self) -> Dungeon:
        n = self.board_size
        dungeon = Dungeon(n, n)

        for i in range(n):
            dungeon.set_type(i, 0, TileType.WALL)
            dungeon.set_type(i, n - 1, TileType.WALL)
            dungeon.set_type(0, i, TileType.WALL)
            dungeon.set_type(n - 1, i, TileType.WALL)

        for x, y in INTERIOR_WALLS:
            dungeon.set_type(x, y, TileType.WALL)

        dungeon.set_type(1, 1, TileType.ENTRANCE)
        dungeon.set_type(n - 2, n - 2, TileType.EXIT)
        dungeon.entrance = Position(1, 1)
        dungeon.exit = Position(n - 2, n - 2)

        self._place_markers(dungeon)
        logger.debug(
            "Generated %dx%d dungeon with %d walls, %d monsters, %d treasures",
            n,
            n,
            len(dungeon.walls()),
            len(dungeon.monsters),
            len(dungeon.treasures),
        )
        return dungeon

    @staticmethod
    def _place_markers(dungeon: Dungeon) -> None:
        for i, (x, y, mtype) in enumerate(MONSTER_MARKERS, start=1):
            if not dungeon.in_bounds(x, y):
                continue
            dungeon.place_monster(
                Monster(
                    id=f"monster-{i}",
                    name=mtype.value.title(),
                    position=Position(x, y),
                    monster_type=mtype,
                )
            )
        for i, (x, y, ttype, value) in enumerate(TREASURE_MARKERS, start=1):
            if not dungeon.in_bounds(x, y):
                continue
            dungeon.place_treasure(
                Treasure(
                    id=f"treasure-{i}",
                    name=ttype.value.title(),
                    position=Position(x, y),
                    treasure_type=ttype,
                    value=value,
                )
            )


def generate_dungeon(board_size: int = BOARD_SIZE) -> Dungeon:
    """Convenience wrapper around DungeonGenerator(board_size).generate()."""
    return DungeonGenerator(board_size).generate()


__all__ = [
    "BOARD_SIZE",
    "INTERIOR_WALLS",
    "MONSTER_MARKERS",
    "TREASURE_MARKERS",
    "DungeonGenerator",
    "generate_dungeon",
]
