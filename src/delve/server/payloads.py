from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..characters import CharacterClass
from ..models import ActionType


class _Payload(BaseModel):
    """Inbound transport payloads use camelCase keys; snake_case is accepted too."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class CreateRoomPayload(_Payload):
    room_name: str = Field(..., alias="roomName", min_length=1, max_length=64)
    player_name: str = Field(..., alias="playerName", min_length=1, max_length=32)
    character_class: CharacterClass = Field(CharacterClass.WARRIOR, alias="characterClass")


class JoinRoomPayload(_Payload):
    room_id: str = Field(..., alias="roomId", min_length=1)
    player_name: str = Field(..., alias="playerName", min_length=1, max_length=32)
    character_class: CharacterClass = Field(CharacterClass.WARRIOR, alias="characterClass")

    @field_validator("room_id")
    @classmethod
    def normalize_room_id(cls, v: str) -> str:
        # Room codes are shown upper-case; accept whatever the user typed
        return v.upper()


class LeaveRoomPayload(_Payload):
    room_id: str = Field(..., alias="roomId", min_length=1)
    player_id: str = Field(..., alias="playerId", min_length=1)

    @field_validator("room_id")
    @classmethod
    def normalize_room_id(cls, v: str) -> str:
        return v.upper()


class GameActionPayload(_Payload):
    room_id: str = Field(..., alias="roomId", min_length=1)
    type: ActionType = Field(..., description="Action type")
    player_id: str = Field(..., alias="playerId", min_length=1)
    data: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("room_id")
    @classmethod
    def normalize_room_id(cls, v: str) -> str:
        return v.upper()

    @field_validator("data", mode="before")
    @classmethod
    def default_data(cls, v: Any) -> Any:
        return {} if v is None else v


class MoveData(_Payload):
    x: int
    y: int


class ChatMessagePayload(_Payload):
    room_id: str = Field(..., alias="roomId", min_length=1)
    player_id: str = Field(..., alias="playerId", min_length=1)
    message: str = Field(..., min_length=1, max_length=500)

    @field_validator("room_id")
    @classmethod
    def normalize_room_id(cls, v: str) -> str:
        return v.upper()


__all__ = [
    "CreateRoomPayload",
    "JoinRoomPayload",
    "LeaveRoomPayload",
    "GameActionPayload",
    "MoveData",
    "ChatMessagePayload",
]
