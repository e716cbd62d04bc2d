from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Outbound channel the host pushes room updates through.

    Implementations wrap a real-time connection layer (websockets, Socket.IO,
    ...). Delivery is fire-and-forget from the engine's point of view.
    """

    def broadcast(self, room_id: str, event: str, payload: Dict[str, Any]) -> None: ...

    def send(self, player_id: str, event: str, payload: Dict[str, Any]) -> None: ...


@dataclass(frozen=True)
class Delivery:
    target: str
    event: str
    payload: Dict[str, Any]
    broadcast: bool = True


class LocalTransport:
    """In-process transport that records every delivery.

    Stands in for a network layer when the whole game runs in one process
    (demos, tests).
    """

    def __init__(self) -> None:
        self.deliveries: List[Delivery] = []

    def broadcast(self, room_id: str, event: str, payload: Dict[str, Any]) -> None:
        logger.debug("broadcast %s -> room %s", event, room_id)
        self.deliveries.append(Delivery(room_id, event, payload, broadcast=True))

    def send(self, player_id: str, event: str, payload: Dict[str, Any]) -> None:
        logger.debug("send %s -> player %s", event, player_id)
        self.deliveries.append(Delivery(player_id, event, payload, broadcast=False))

    def events(self, event: str, target: Optional[str] = None) -> List[Delivery]:
        return [
            d for d in self.deliveries
            if d.event == event and (target is None or d.target == target)
        ]

    def last(self, event: str) -> Optional[Delivery]:
        found = self.events(event)
        return found[-1] if found else None

    def clear(self) -> None:
        self.deliveries.clear()


__all__ = ["Transport", "Delivery", "LocalTransport"]
