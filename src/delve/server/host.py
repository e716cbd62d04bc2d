from __future__ import annotations

import logging
import random
import string
import time
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from ..characters import CharacterClass
from ..config import SessionConfig
from ..dungeon.tiles import Position
from ..errors import InvalidPayloadError, RoomNotFoundError, UnsupportedActionError
from ..events import Event, EventBus, EventType
from ..models import ActionType, ChatMessage, GameAction, MoveResult, Player, TurnResult
from ..session.snapshot import SessionSnapshot
from ..session.state import SessionState
from .chat import ChatLog
from .payloads import (
    ChatMessagePayload,
    CreateRoomPayload,
    GameActionPayload,
    JoinRoomPayload,
    LeaveRoomPayload,
    MoveData,
)
from .transport import Transport

logger = logging.getLogger(__name__)

ROOM_ID_ALPHABET = string.ascii_uppercase + string.digits
ROOM_ID_LENGTH = 6

# Outbound event names
ROOM_STATE = "room-state"
ROOM_CLOSED = "room-closed"
CHAT_MESSAGE = "chat-message"
ACTION_REJECTED = "action-rejected"

WELCOME_TEXT = "Welcome to the dungeon, {name}! Your quest begins now."


@dataclass
class Room:
    """A hosted session plus its chat transcript and serializing lock."""

    session: SessionState
    chat: ChatLog
    lock: RLock = field(default_factory=RLock)
    closed: bool = False

    @property
    def id(self) -> str:
        return self.session.id


class SessionHost:
    """Authoritative in-process host for dungeon sessions.

    Handles the logical transport events (create-room, join-room, leave-room,
    game-action, chat-message). Every mutation of a room runs under that
    room's lock, so concurrent submissions are applied one at a time and the
    session's own turn check decides which of them take effect.

    The transport is injected; updated snapshots and chat lines are pushed
    through it after each change.
    """

    def __init__(
        self,
        transport: Transport,
        config: Optional[SessionConfig] = None,
        *,
        id_factory: Optional[Callable[[], str]] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.transport = transport
        self.config = config or SessionConfig()
        self.config.validate()
        self._rng = rng or random.Random()
        self._id_factory = id_factory or self._random_room_id
        self._clock = clock
        self._rooms: Dict[str, Room] = {}
        self._registry_lock = RLock()

    # ------------------------------------------------------------------ rooms
    def room(self, room_id: str) -> Room:
        with self._registry_lock:
            room = self._rooms.get(room_id)
        if room is None:
            raise RoomNotFoundError(f"Room {room_id} not found")
        return room

    def room_ids(self) -> List[str]:
        with self._registry_lock:
            return list(self._rooms)

    def snapshot(self, room_id: str) -> SessionSnapshot:
        room = self.room(room_id)
        with room.lock:
            return room.session.snapshot()

    def create_room(
        self,
        room_name: str,
        player_name: str,
        character_class: CharacterClass = CharacterClass.WARRIOR,
    ) -> Tuple[str, Player]:
        """Create a session with the caller as host, standing on the entrance."""
        with self._registry_lock:
            room_id = self._unique_room_id()
            session = SessionState(
                room_id,
                room_name,
                config=self.config,
                bus=EventBus(),
                clock=self._clock,
            )
            room = Room(session=session, chat=ChatLog(self.config.chat_history_limit))
            self._wire(room)
            self._rooms[room_id] = room
        with room.lock:
            player = session.add_player(player_name, character_class, is_host=True)
            self._chat(room, room.chat.system(WELCOME_TEXT.format(name=player_name)))
        logger.info("Room %s '%s' created by '%s'", room_id, room_name, player_name)
        return room_id, player

    def join_room(
        self,
        room_id: str,
        player_name: str,
        character_class: CharacterClass = CharacterClass.WARRIOR,
    ) -> Player:
        room = self.room(room_id)
        with room.lock:
            self._ensure_open(room)
            player = room.session.add_player(player_name, character_class)
            self._chat(room, room.chat.system(WELCOME_TEXT.format(name=player_name)))
        return player

    def leave_room(self, room_id: str, player_id: str) -> None:
        """Apply the disconnect policy; the room is closed once nobody is left.

        The emptiness check and the close happen under the same room lock, so
        a concurrent join either lands before the check (and keeps the room
        open) or sees the room closed.
        """
        room = self.room(room_id)
        with room.lock:
            self._ensure_open(room)
            name = room.session.player(player_id).name
            room.session.mark_disconnected(player_id)
            self._chat(room, room.chat.system(f"{name} has left the dungeon."))
            if not any(p.is_connected for p in room.session.players):
                self._close(room)

    def close_room(self, room_id: str) -> None:
        room = self.room(room_id)
        with room.lock:
            self._ensure_open(room)
            self._close(room)

    # ---------------------------------------------------------------- actions
    def handle_action(self, room_id: str, action: GameAction) -> Union[MoveResult, TurnResult]:
        """Apply a game action. Only MOVE and END_TURN have rules here."""
        room = self.room(room_id)
        if action.type is ActionType.MOVE:
            try:
                move = MoveData.model_validate(action.data)
            except ValidationError as exc:
                raise InvalidPayloadError(f"Invalid move data: {exc}") from exc
            with room.lock:
                self._ensure_open(room)
                result = room.session.attempt_move(action.player_id, Position(move.x, move.y))
            if not result.accepted:
                self._notify_rejected(action, result.reason.value if result.reason else None)
            return result
        if action.type is ActionType.END_TURN:
            with room.lock:
                self._ensure_open(room)
                result = room.session.end_turn(action.player_id)
            if not result.accepted:
                self._notify_rejected(action, result.reason.value if result.reason else None)
            return result
        raise UnsupportedActionError(f"Action '{action.type.value}' has no resolution logic")

    def post_chat(self, room_id: str, player_id: str, message: str) -> ChatMessage:
        room = self.room(room_id)
        with room.lock:
            self._ensure_open(room)
            player = room.session.player(player_id)
            return self._chat(room, room.chat.post(player.id, player.name, message))

    def expire_idle_turns(self, now: Optional[float] = None) -> Dict[str, TurnResult]:
        """Force end_turn in every room whose turn timeout has elapsed."""
        expired: Dict[str, TurnResult] = {}
        for room_id in self.room_ids():
            try:
                room = self.room(room_id)
            except RoomNotFoundError:
                continue
            with room.lock:
                if room.closed:
                    continue
                result = room.session.expire_idle_turn(now)
            if result is not None:
                expired[room_id] = result
        return expired

    # -------------------------------------------------------------- transport
    def dispatch(self, event: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Entry point for raw inbound transport events."""
        handlers = {
            "create-room": self._on_create_room,
            "join-room": self._on_join_room,
            "leave-room": self._on_leave_room,
            "game-action": self._on_game_action,
            "chat-message": self._on_chat_message,
        }
        handler = handlers.get(event)
        if handler is None:
            raise InvalidPayloadError(f"Unknown event: {event!r}")
        try:
            return handler(payload or {})
        except ValidationError as exc:
            logger.warning("Rejected '%s' payload: %s", event, exc)
            raise InvalidPayloadError(f"Invalid '{event}' payload: {exc}") from exc

    def _on_create_room(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        req = CreateRoomPayload.model_validate(payload)
        room_id, player = self.create_room(req.room_name, req.player_name, req.character_class)
        return {"roomId": room_id, "playerId": player.id}

    def _on_join_room(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        req = JoinRoomPayload.model_validate(payload)
        player = self.join_room(req.room_id, req.player_name, req.character_class)
        return {"roomId": req.room_id, "playerId": player.id}

    def _on_leave_room(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        req = LeaveRoomPayload.model_validate(payload)
        self.leave_room(req.room_id, req.player_id)
        return {"roomId": req.room_id, "playerId": req.player_id}

    def _on_game_action(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        req = GameActionPayload.model_validate(payload)
        result = self.handle_action(req.room_id, GameAction(req.type, req.player_id, req.data))
        out: Dict[str, Any] = {
            "roomId": req.room_id,
            "accepted": result.accepted,
            "reason": result.reason.value if result.reason else None,
        }
        if isinstance(result, TurnResult):
            out.update(currentTurn=result.current_turn, round=result.round)
        else:
            out.update(remainingMoves=result.remaining_moves)
        return out

    def _on_chat_message(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        req = ChatMessagePayload.model_validate(payload)
        return self.post_chat(req.room_id, req.player_id, req.message).to_dict()

    # ---------------------------------------------------------------- helpers
    def _wire(self, room: Room) -> None:
        """Forward session events to the transport and the chat log."""
        bus = room.session.bus
        room_id = room.id

        def on_snapshot(event: Event) -> None:
            state = event.payload["snapshot"].to_dict()
            # Clients drop room-state pushes older than the last one applied
            state["eventSeq"] = event.seq
            self.transport.broadcast(room_id, ROOM_STATE, state)

        def on_moved(event: Event) -> None:
            player = room.session.player(event.payload["playerId"])
            to = event.payload["to"]
            self._chat(room, room.chat.system(f"moved to ({to['x']}, {to['y']})", player.name, player.id))

        def on_turn(event: Event) -> None:
            name = event.payload.get("playerName") or "Unknown"
            self._chat(room, room.chat.system(f"{name}'s turn"))

        bus.subscribe(EventType.SNAPSHOT, on_snapshot)
        bus.subscribe(EventType.PLAYER_MOVED, on_moved)
        bus.subscribe(EventType.TURN_CHANGED, on_turn)

    @staticmethod
    def _ensure_open(room: Room) -> None:
        if room.closed:
            raise RoomNotFoundError(f"Room {room.id} not found")

    def _close(self, room: Room) -> None:
        # Caller holds room.lock; the registry lock is always taken second
        room.closed = True
        with self._registry_lock:
            self._rooms.pop(room.id, None)
        self.transport.broadcast(room.id, ROOM_CLOSED, {"roomId": room.id})
        logger.info("Room %s closed", room.id)

    def _chat(self, room: Room, message: ChatMessage) -> ChatMessage:
        self.transport.broadcast(room.id, CHAT_MESSAGE, message.to_dict())
        return message

    def _notify_rejected(self, action: GameAction, reason: Optional[str]) -> None:
        self.transport.send(
            action.player_id,
            ACTION_REJECTED,
            {"type": action.type.value, "reason": reason},
        )

    def _random_room_id(self) -> str:
        return "".join(self._rng.choice(ROOM_ID_ALPHABET) for _ in range(ROOM_ID_LENGTH))

    def _unique_room_id(self) -> str:
        for _ in range(100):
            room_id = self._id_factory()
            if room_id not in self._rooms:
                return room_id
        raise RuntimeError("Could not allocate a unique room id")


__all__ = [
    "Room",
    "SessionHost",
    "ROOM_STATE",
    "ROOM_CLOSED",
    "CHAT_MESSAGE",
    "ACTION_REJECTED",
    "ROOM_ID_LENGTH",
]
