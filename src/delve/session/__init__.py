"""Session aggregate: roster, turns, movement and fog of war."""
from .snapshot import PlayerView, SessionSnapshot
from .state import SessionState

__all__ = ["PlayerView", "SessionSnapshot", "SessionState"]
