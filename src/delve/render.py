from __future__ import annotations

from typing import Dict, List

from .dungeon.tiles import Position
from .session.snapshot import SessionSnapshot

HIDDEN = " "
MONSTER = "M"
TREASURE = "$"


def player_glyph(index: int) -> str:
    """Players are drawn as their 1-based turn-order slot."""
    return str(index + 1) if index < 9 else "@"


def render_ascii(snapshot: SessionSnapshot, *, reveal: bool = False) -> str:
    """
    Text dump of a snapshot for logs and the CLI.

    Hidden tiles are blank unless ``reveal`` is set. On visible tiles players
    take precedence over monsters, monsters over treasures, and treasures over
    the tile glyph.
    """
    players_at: Dict[Position, int] = {}
    for i, p in enumerate(snapshot.players):
        players_at.setdefault(p.position, i)
    monsters = {m.position for m in snapshot.monsters if m.is_alive}
    treasures = {t.position for t in snapshot.treasures if not t.is_collected}

    lines: List[str] = []
    for y in range(snapshot.height):
        row = []
        for x in range(snapshot.width):
            pos = Position(x, y)
            if not reveal and pos not in snapshot.lit:
                row.append(HIDDEN)
            elif pos in players_at:
                row.append(player_glyph(players_at[pos]))
            elif pos in monsters:
                row.append(MONSTER)
            elif pos in treasures:
                row.append(TREASURE)
            else:
                row.append(snapshot.layout[y * snapshot.width + x].glyph)
        lines.append("".join(row))
    return "\n".join(lines)


def render_status(snapshot: SessionSnapshot) -> str:
    current = snapshot.current_player
    header = f"{snapshot.name} [{snapshot.id}] round {snapshot.round}"
    if current is not None:
        header += f" - {current.name}'s turn ({current.remaining_moves}/{current.speed} moves)"
    roster = [
        f"  {player_glyph(i)} {p.name} ({p.character_class.value}) at ({p.position.x}, {p.position.y})"
        + ("" if p.is_connected else " [disconnected]")
        for i, p in enumerate(snapshot.players)
    ]
    return "\n".join([header, *roster])


__all__ = ["render_ascii", "render_status", "player_glyph"]
