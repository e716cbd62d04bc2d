import argparse
import logging
from pathlib import Path
from typing import List, Optional

from . import __version__
from .characters import CharacterClass
from .config import SessionConfig
from .errors import RoomFullError
from .logging_config import configure_logging
from .models import ActionType, GameAction
from .render import render_ascii, render_status
from .server.host import SessionHost
from .server.transport import LocalTransport

logger = logging.getLogger(__name__)

DEMO_NAMES = ["Aria", "Sir Lancelot", "Gandalf", "Shade"]


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="delve",
        description="Dungeon Delve - run a local turn-based dungeon session and print the board.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        dest="config_path",
        type=Path,
        default=None,
        help="Path to a session config YAML file to override defaults.",
    )
    parser.add_argument(
        "--players",
        type=int,
        default=3,
        help="Number of demo players to seat (default: 3).",
    )
    parser.add_argument(
        "--class",
        dest="classes",
        action="append",
        choices=[c.value for c in CharacterClass],
        help="Character class per player, in seat order. Repeat for each player.",
    )
    parser.add_argument(
        "--turns",
        type=int,
        default=6,
        help="How many turns to play before stopping (default: 6).",
    )
    parser.add_argument(
        "--reveal",
        action="store_true",
        help="Draw the whole map instead of only what the party can see.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose debug logging.",
    )
    return parser.parse_args(argv)


def _seat_classes(count: int, chosen: Optional[List[str]]) -> List[CharacterClass]:
    cycle = list(CharacterClass)
    out = []
    for i in range(count):
        if chosen and i < len(chosen):
            out.append(CharacterClass(chosen[i]))
        else:
            out.append(cycle[i % len(cycle)])
    return out


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(logging.DEBUG if args.debug else None)

    config = SessionConfig.load(args.config_path)
    if args.players < 1:
        raise SystemExit("--players must be >= 1")

    host = SessionHost(LocalTransport(), config)
    classes = _seat_classes(args.players, args.classes)
    room_id, _ = host.create_room("Epic Adventure", DEMO_NAMES[0], classes[0])
    for i in range(1, args.players):
        name = DEMO_NAMES[i] if i < len(DEMO_NAMES) else f"Adventurer {i + 1}"
        try:
            host.join_room(room_id, name, classes[i])
        except RoomFullError as exc:
            logger.warning("Stopped seating players: %s", exc)
            break

    room = host.room(room_id)
    session = room.session
    goal = session.dungeon.exit

    for _ in range(args.turns):
        player = session.current_player
        if player is None:
            break
        options = session.reachable_targets(player.id)
        if options and goal is not None:
            # Head for the exit; ties broken top-left first for a stable demo
            target = min(options, key=lambda p: (p.manhattan(goal), p.y, p.x))
            host.handle_action(room_id, GameAction(ActionType.MOVE, player.id, {"x": target.x, "y": target.y}))
        snap = host.snapshot(room_id)
        print(render_status(snap))
        print(render_ascii(snap, reveal=args.reveal))
        print()
        host.handle_action(room_id, GameAction(ActionType.END_TURN, player.id))

    for message in room.chat.messages():
        print(f"[{message.type.value}] {message.player_name}: {message.message}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
