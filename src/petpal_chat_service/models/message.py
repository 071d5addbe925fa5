from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    false,
)

from ..db import Base
from .base import UUIDMixin, utcnow

SYSTEM_SENDER_ROLE = "system"


class Message(UUIDMixin, Base):
    __tablename__ = "messages"
    __table_args__ = (
        UniqueConstraint("conversation_id", "sequence", name="uq_messages_conversation_sequence"),
        Index("ix_messages_conversation_created", "conversation_id", "created_at"),
    )

    conversation_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    # 1-based insertion order within the conversation; ordering tie-break
    sequence = Column(Integer, nullable=False)
    sender_role = Column(String(16), nullable=False)  # 'requester' | 'owner' | 'system'
    sender_email = Column(String(320), nullable=False)
    sender_name = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    # Single shared flag; equivalent to per-recipient state in a two-party chat
    read = Column(Boolean, nullable=False, default=False, server_default=false())
