"""
Dungeon Delve session engine.

Headless domain logic for a turn-based, multi-player dungeon crawl:
- Fixed-layout dungeon generation
- Fog-of-war visibility shared across the party
- Class-based character creation
- Turn rotation with a per-turn movement budget
- A session host that serializes transport events per room

Presentation layers (renderers, chat UIs, real network transports) should
import and compose these services.
"""
from importlib.metadata import version, PackageNotFoundError

__all__ = ["__version__"]

try:
    __version__ = version("dungeon-delve")
except PackageNotFoundError:  # pragma: no cover - during tests without packaging
    __version__ = "0.0.0"
