from __future__ import annotations

import hashlib
import logging
from typing import Dict, Iterator, List, Optional, Sequence

from .features import Monster, Treasure
from .tiles import Position, Tile, TileType

logger = logging.getLogger(__name__)


class Dungeon:
    """
    Fixed-size tile grid for one session.

    Tiles live in a flat list indexed by ``y * width + x``. The layout (type and
    walkability) is set once by the generator; afterwards only ``is_visible``
    changes. All coordinate access is bounds-checked.
    """

    def __init__(self, width: int, height: int) -> None:
        if width < 3 or height < 3:
            raise ValueError("Dungeon must be at least 3x3 to maintain wall borders")
        self.width = width
        self.height = height
        self._tiles: List[Tile] = [
            Tile(x=i % width, y=i // width, type=TileType.FLOOR, is_walkable=True)
            for i in range(width * height)
        ]
        self.entrance: Optional[Position] = None
        self.exit: Optional[Position] = None
        self._monsters: Dict[Position, Monster] = {}
        self._treasures: Dict[Position, Treasure] = {}

    # ---- Safety / Bounds -------------------------------------------------
    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def _index(self, x: int, y: int) -> int:
        return y * self.width + x

    def tile(self, x: int, y: int) -> Optional[Tile]:
        if not self.in_bounds(x, y):
            return None
        return self._tiles[self._index(x, y)]

    def tile_at(self, pos: Position) -> Optional[Tile]:
        return self.tile(pos.x, pos.y)

    def set_type(self, x: int, y: int, tile_type: TileType) -> None:
        if not self.in_bounds(x, y):
            # Fixed layout tables may list coordinates for larger boards
            logger.debug("Skipping out-of-bounds tile write at (%d,%d)", x, y)
            return
        self._tiles[self._index(x, y)].set_type(tile_type)

    # ---- Query -----------------------------------------------------------
    def is_walkable(self, x: int, y: int) -> bool:
        t = self.tile(x, y)
        return t is not None and t.is_walkable

    def tiles(self) -> Iterator[Tile]:
        """Iterate tiles in row-major order."""
        return iter(self._tiles)

    def rows(self) -> List[List[Tile]]:
        return [self._tiles[y * self.width:(y + 1) * self.width] for y in range(self.height)]

    def walls(self) -> List[Position]:
        return [t.position for t in self._tiles if t.type is TileType.WALL]

    def signature(self) -> str:
        """Deterministic digest of the layout (tile types + markers)."""
        payload = {
            "w": self.width,
            "h": self.height,
            "tiles": "".join(t.type.glyph for t in self._tiles),
            "monsters": sorted((p.x, p.y) for p in self._monsters),
            "treasures": sorted((p.x, p.y) for p in self._treasures),
        }
        raw = str(payload).encode("utf-8")
        return hashlib.blake2b(raw, digest_size=16).hexdigest()

    # ---- Markers ---------------------------------------------------------
    def place_monster(self, monster: Monster) -> bool:
        if not self.is_walkable(monster.position.x, monster.position.y):
            logger.warning("Monster %s not placed: %s is not walkable", monster.id, monster.position)
            return False
        self._monsters[monster.position] = monster
        return True

    def place_treasure(self, treasure: Treasure) -> bool:
        if not self.is_walkable(treasure.position.x, treasure.position.y):
            logger.warning("Treasure %s not placed: %s is not walkable", treasure.id, treasure.position)
            return False
        self._treasures[treasure.position] = treasure
        return True

    @property
    def monsters(self) -> Sequence[Monster]:
        return tuple(self._monsters.values())

    @property
    def treasures(self) -> Sequence[Treasure]:
        return tuple(self._treasures.values())

    def monster_at(self, pos: Position) -> Optional[Monster]:
        return self._monsters.get(pos)

    def treasure_at(self, pos: Position) -> Optional[Treasure]:
        return self._treasures.get(pos)

    # ---- Visibility ------------------------------------------------------
    def clear_visibility(self) -> None:
        for t in self._tiles:
            t.is_visible = False

    def to_dict(self) -> dict:
        return {
            "width": self.width,
            "height": self.height,
            "tiles": [[t.to_dict() for t in row] for row in self.rows()],
            "monsters": [m.to_dict() for m in self.monsters],
            "treasures": [t.to_dict() for t in self.treasures],
        }

    def __repr__(self) -> str:
        return f"Dungeon({self.width}x{self.height})"


__all__ = ["Dungeon"]
