from .tiles import Position, Tile, TileType
from .map import Dungeon
from .features import Monster, MonsterType, Treasure, TreasureType
from .generator import BOARD_SIZE, DungeonGenerator, generate_dungeon

__all__ = [
    "Position",
    "Tile",
    "TileType",
    "Dungeon",
    "Monster",
    "MonsterType",
    "Treasure",
    "TreasureType",
    "BOARD_SIZE",
    "DungeonGenerator",
    "generate_dungeon",
]
