from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..models import Conversation, ParticipantRole


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ParticipantRead(CamelModel):
    email: str
    name: str


class LastMessageSummary(CamelModel):
    content: str
    sender: str
    timestamp: datetime


class ConversationRead(CamelModel):
    id: UUID
    adoption_request_id: UUID
    pet_id: UUID
    requester: ParticipantRead
    owner: ParticipantRead
    last_message: Optional[LastMessageSummary] = None
    message_count: int = 0
    status: str
    created_at: datetime

    @classmethod
    def from_model(cls, conv: Conversation) -> "ConversationRead":
        return cls(**_conversation_fields(conv))


class ConversationSummary(ConversationRead):
    unread_count: int = 0
    user_role: ParticipantRole

    @classmethod
    def from_model(
        cls, conv: Conversation, *, unread_count: int, user_role: ParticipantRole
    ) -> "ConversationSummary":
        return cls(
            **_conversation_fields(conv), unread_count=unread_count, user_role=user_role
        )


def _conversation_fields(conv: Conversation) -> dict:
    last_message = None
    if conv.last_message_at is not None:
        last_message = LastMessageSummary(
            content=conv.last_message_content or "",
            sender=conv.last_message_sender or "",
            timestamp=conv.last_message_at,
        )
    return {
        "id": conv.id,
        "adoption_request_id": conv.adoption_request_id,
        "pet_id": conv.pet_id,
        "requester": ParticipantRead(email=conv.requester_email, name=conv.requester_name),
        "owner": ParticipantRead(email=conv.owner_email, name=conv.owner_name),
        "last_message": last_message,
        "message_count": conv.message_count or 0,
        "status": conv.status,
        "created_at": conv.created_at,
    }


class MessageCreate(CamelModel):
    conversation_id: UUID
    # Emptiness is checked by the delivery engine so it maps to InvalidInput
    content: str
    sender_email: str = Field(..., min_length=1, max_length=320)
    sender_name: str = Field(..., min_length=1, max_length=255)


class MessageRead(CamelModel):
    id: UUID
    conversation_id: UUID
    sequence: int
    sender_role: str
    sender_email: str
    sender_name: str
    content: str
    created_at: datetime
    read: bool


class Pagination(CamelModel):
    page: int
    limit: int
    has_more: bool


class MessageHistory(CamelModel):
    messages: List[MessageRead]
    conversation: ConversationRead
    pagination: Pagination


class MarkReadRequest(CamelModel):
    user_email: str = Field(..., min_length=1, max_length=320)


class MarkReadResponse(CamelModel):
    message: str
    updated: int
