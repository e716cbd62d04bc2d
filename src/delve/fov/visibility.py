from __future__ import annotations

import logging
from enum import Enum
from typing import FrozenSet, Iterable, Set

from ..dungeon.map import Dungeon
from ..dungeon.tiles import Position

logger = logging.getLogger(__name__)


VISION_RADIUS = 3


class FogTileState(str, Enum):
    UNSEEN = "unseen"         # never seen; fully dark
    SEEN = "seen"             # seen before but not currently visible
    VISIBLE = "visible"       # inside some player's vision circle right now


def visible_positions(width: int, height: int, origins: Iterable[Position], radius: int) -> Set[Position]:
    """
    Union of circular vision areas around each origin, clipped to the grid.

    A tile at integer offset (i, j) from an origin is visible when
    i*i + j*j <= radius*radius. Walls do not block sight.
    """
    if radius < 0:
        raise ValueError("radius must be >= 0")
    r2 = radius * radius
    visible: Set[Position] = set()
    for origin in origins:
        for j in range(-radius, radius + 1):
            y = origin.y + j
            if not 0 <= y < height:
                continue
            for i in range(-radius, radius + 1):
                x = origin.x + i
                if 0 <= x < width and i * i + j * j <= r2:
                    visible.add(Position(x, y))
    return visible


class VisibilityEngine:
    """
    Fog of war shared by the whole party.

    Responsibilities:
    - Calculates the tiles currently visible to any player.
    - Writes ``is_visible`` onto the dungeon's tiles.
    - Remembers tiles that have been seen at least once.

    Visibility is recomputed from scratch on every pass. With ``sticky=False``
    (the default) a tile nobody can currently see reports hidden even if it was
    seen before; ``fog_state`` still distinguishes SEEN from UNSEEN so a
    renderer can dim explored tiles. With ``sticky=True`` explored tiles keep
    ``is_visible`` set.
    """

    def __init__(self, radius: int = VISION_RADIUS, *, sticky: bool = False) -> None:
        if radius < 0:
            raise ValueError("radius must be >= 0")
        self.radius = radius
        self.sticky = sticky
        self._visible: FrozenSet[Position] = frozenset()
        self._seen: Set[Position] = set()
        logger.debug("VisibilityEngine initialized: radius=%d sticky=%s", radius, sticky)

    def compute_visible(self, dungeon: Dungeon, positions: Iterable[Position]) -> FrozenSet[Position]:
        """Pure computation of the visible set; does not touch tiles or memory."""
        return frozenset(visible_positions(dungeon.width, dungeon.height, positions, self.radius))

    def apply(self, dungeon: Dungeon, positions: Iterable[Position]) -> FrozenSet[Position]:
        """
        Recompute visibility for all positions and write it onto the dungeon.

        Returns the set of currently visible positions (never includes
        remembered-only tiles, even when sticky).
        """
        visible = self.compute_visible(dungeon, positions)
        self._visible = visible
        self._seen.update(visible)

        lit = self._seen if self.sticky else visible
        for tile in dungeon.tiles():
            tile.is_visible = tile.position in lit

        logger.debug(
            "Visibility updated: %d visible, %d explored (sticky=%s)",
            len(visible),
            len(self._seen),
            self.sticky,
        )
        return visible

    @property
    def visible(self) -> FrozenSet[Position]:
        return self._visible

    @property
    def explored(self) -> FrozenSet[Position]:
        return frozenset(self._seen)

    def fog_state(self, pos: Position) -> FogTileState:
        if pos in self._visible:
            return FogTileState.VISIBLE
        if pos in self._seen:
            return FogTileState.SEEN
        return FogTileState.UNSEEN

    def reset_memory(self) -> None:
        """Forget all explored tiles; current visibility is kept."""
        self._seen = set(self._visible)
        logger.debug("Visibility memory reset")


__all__ = ["VISION_RADIUS", "FogTileState", "visible_positions", "VisibilityEngine"]
