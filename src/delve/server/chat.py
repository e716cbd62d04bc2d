from __future__ import annotations

import logging
from collections import deque
from typing import Deque, List, Optional

from ..models import ChatMessage, MessageType

logger = logging.getLogger(__name__)

SYSTEM_SENDER = "System"


class ChatLog:
    """Append-only chat transcript for a room, bounded to the newest entries."""

    def __init__(self, limit: int = 200) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        self.limit = limit
        self._messages: Deque[ChatMessage] = deque(maxlen=limit)

    def __len__(self) -> int:
        return len(self._messages)

    def append(self, message: ChatMessage) -> ChatMessage:
        self._messages.append(message)
        logger.debug("Chat [%s] %s: %s", message.type.value, message.player_name, message.message)
        return message

    def post(self, player_id: str, player_name: str, text: str) -> ChatMessage:
        return self.append(ChatMessage.create(player_id, player_name, text, MessageType.CHAT))

    def system(self, text: str, player_name: str = SYSTEM_SENDER, player_id: str = "") -> ChatMessage:
        return self.append(ChatMessage.create(player_id, player_name, text, MessageType.SYSTEM))

    def messages(self, since: Optional[int] = None) -> List[ChatMessage]:
        """All retained messages, optionally only those with timestamp > since."""
        if since is None:
            return list(self._messages)
        return [m for m in self._messages if m.timestamp > since]


__all__ = ["ChatLog", "SYSTEM_SENDER"]
