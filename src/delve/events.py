import logging
from dataclasses import dataclass
from threading import RLock
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class EventType:
    """Names of the events a session publishes."""

    PLAYER_JOINED = "session.player_joined"
    PLAYER_LEFT = "session.player_left"
    PLAYER_MOVED = "session.player_moved"
    MOVE_REJECTED = "session.move_rejected"
    TURN_CHANGED = "session.turn_changed"
    SNAPSHOT = "session.snapshot"


@dataclass(frozen=True)
class Event:
    """One published session event.

    ``seq`` increases by one per publish on the owning bus, so listeners that
    forward events elsewhere can keep them in session order.
    """

    name: str
    payload: Dict[str, Any]
    seq: int


Listener = Callable[[Event], None]


class EventBus:
    """Per-session listener registry.

    Each SessionState owns one bus; the host wires its transport and chat
    listeners onto it when a room is created and drops the bus with the room.
    Listeners run synchronously in subscription order. A listener that raises
    is logged and skipped so the session's own state change still completes.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {}
        self._seq = 0
        self._lock = RLock()

    def subscribe(self, event_name: str, listener: Listener) -> None:
        if not callable(listener):
            raise TypeError("listener must be callable")
        with self._lock:
            self._listeners.setdefault(event_name, []).append(listener)

    def publish(self, event_name: str, payload: Dict[str, Any]) -> Event:
        with self._lock:
            self._seq += 1
            event = Event(name=event_name, payload=payload, seq=self._seq)
            listeners = list(self._listeners.get(event_name, ()))
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Listener for '%s' failed (seq=%d)", event_name, event.seq)
        return event


__all__ = ["EventType", "Event", "EventBus", "Listener"]
