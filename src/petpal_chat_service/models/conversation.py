from enum import Enum
from typing import Optional, Tuple

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, Uuid

from ..db import Base
from .base import TimestampMixin, UUIDMixin


class ParticipantRole(str, Enum):
    REQUESTER = "requester"
    OWNER = "owner"


class ConversationStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


class Conversation(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "conversations"

    adoption_request_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("adoption_requests.id"),
        unique=True,
        nullable=False,
    )
    pet_id = Column(Uuid(as_uuid=True), ForeignKey("pets.id"), nullable=False, index=True)

    # Participant snapshot taken when the conversation is created
    requester_email = Column(String(320), nullable=False, index=True)
    requester_name = Column(String(255), nullable=False)
    owner_email = Column(String(320), nullable=False, index=True)
    owner_name = Column(String(255), nullable=False)

    last_message_content = Column(Text, nullable=True)
    last_message_sender = Column(String(16), nullable=True)  # 'requester' | 'owner' | 'system'
    last_message_at = Column(DateTime(timezone=True), nullable=True, index=True)

    message_count = Column(Integer, nullable=False, default=0, server_default="0")
    status = Column(
        String(16), nullable=False, default=ConversationStatus.ACTIVE.value, server_default="active"
    )

    def role_for(self, email: Optional[str]) -> Optional[ParticipantRole]:
        """Return the participant slot matching ``email``, if any."""
        email = normalize_email(email)
        if not email:
            return None
        if email == normalize_email(self.requester_email):
            return ParticipantRole.REQUESTER
        if email == normalize_email(self.owner_email):
            return ParticipantRole.OWNER
        return None

    def participant(self, role: ParticipantRole) -> Tuple[str, str]:
        if role is ParticipantRole.REQUESTER:
            return self.requester_email, self.requester_name
        return self.owner_email, self.owner_name

    def __repr__(self) -> str:
        return f"<Conversation {self.id} adoption={self.adoption_request_id}>"
