"""Optimistic outgoing message bookkeeping."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class PendingState(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class InvalidTransition(Exception):
    def __init__(self, current: PendingState, target: PendingState):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move pending message from {current.value} to {target.value}")


def new_temp_id() -> str:
    return f"temp-{uuid.uuid4().hex}"


@dataclass
class PendingMessage:
    conversation_id: str
    content: str
    sender_email: str
    sender_name: str
    temp_id: str = field(default_factory=new_temp_id)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    state: PendingState = PendingState.PENDING
    server_id: Optional[str] = None
    sequence: Optional[int] = None
    error: Optional[BaseException] = None

    @property
    def id(self) -> str:
        return self.server_id or self.temp_id

    def confirm(self, message: Dict[str, Any]) -> None:
        """Adopt the server's id, sequence and timestamp."""
        self._require(PendingState.PENDING, PendingState.CONFIRMED)
        self.state = PendingState.CONFIRMED
        self.server_id = str(message["id"])
        self.sequence = message.get("sequence")
        created = message.get("createdAt")
        if isinstance(created, str):
            self.created_at = datetime.fromisoformat(created.replace("Z", "+00:00"))
        elif isinstance(created, datetime):
            self.created_at = created
        self.error = None

    def fail(self, error: BaseException) -> None:
        self._require(PendingState.PENDING, PendingState.FAILED)
        self.state = PendingState.FAILED
        self.error = error

    def retry(self) -> None:
        self._require(PendingState.FAILED, PendingState.PENDING)
        self.state = PendingState.PENDING
        self.error = None

    def _require(self, expected: PendingState, target: PendingState) -> None:
        if self.state is not expected:
            raise InvalidTransition(self.state, target)
