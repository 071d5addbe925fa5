"""Unread counters and the short list of recent message notifications."""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Mapping

DEFAULT_NOTIFICATION_LIMIT = 5


@dataclass(frozen=True)
class Notification:
    conversation_id: str
    message_id: str
    sender_name: str
    content: str
    created_at: Any = None


class NotificationAggregator:
    """
    Tracks unread messages per conversation and keeps the newest
    ``limit`` notifications, newest first.
    """

    def __init__(self, limit: int = DEFAULT_NOTIFICATION_LIMIT):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.limit = limit
        self._unread: Dict[str, int] = {}
        self._recent: Deque[Notification] = deque(maxlen=limit)

    def record(self, message: Mapping[str, Any]) -> Notification:
        conversation_id = str(message["conversationId"])
        notification = Notification(
            conversation_id=conversation_id,
            message_id=str(message.get("id", "")),
            sender_name=message.get("senderName", ""),
            content=message.get("content", ""),
            created_at=message.get("createdAt"),
        )
        self._unread[conversation_id] = self._unread.get(conversation_id, 0) + 1
        self._recent.appendleft(notification)
        return notification

    def clear(self, conversation_id) -> None:
        conversation_id = str(conversation_id)
        self._unread.pop(conversation_id, None)
        remaining = [n for n in self._recent if n.conversation_id != conversation_id]
        self._recent.clear()
        self._recent.extend(remaining)

    def unread(self, conversation_id) -> int:
        return self._unread.get(str(conversation_id), 0)

    @property
    def total_unread(self) -> int:
        return sum(self._unread.values())

    @property
    def recent(self) -> List[Notification]:
        return list(self._recent)

    def seed(self, counts: Mapping[Any, int]) -> None:
        """Replace unread counters with server-side counts."""
        self._unread = {str(k): int(v) for k, v in counts.items() if v}
