class DelveError(Exception):
    """Base error for Dungeon Delve domain exceptions."""


class RoomNotFoundError(DelveError):
    """Raised when a transport event names a room that does not exist."""


class RoomFullError(DelveError):
    """Raised when joining a room that already holds max_players players."""


class PlayerNotFoundError(DelveError):
    """Raised when a player id is not part of the session roster."""


class UnsupportedActionError(DelveError):
    """Raised for declared action types that have no resolution logic."""


class InvalidPayloadError(DelveError):
    """Raised when an inbound transport payload fails validation."""
