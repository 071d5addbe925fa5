from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_db
from ..realtime import RoomRouter, get_room_router
from ..schemas import (
    ConversationSummary,
    MarkReadRequest,
    MarkReadResponse,
    MessageHistory,
)
from ..security import SessionIdentity, bind_email, get_session_identity
from ..services import delivery, registry

conversations_router = APIRouter(prefix="/conversations", tags=["Conversations"])


@conversations_router.get("", response_model=List[ConversationSummary])
async def list_my_conversations(
    email: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
    identity: Optional[SessionIdentity] = Depends(get_session_identity),
):
    bind_email(identity, email)
    return await delivery.list_conversations(db, email)


@conversations_router.get(
    "/by-adoption/{adoption_id}", response_model=ConversationSummary
)
async def get_conversation_by_adoption(
    adoption_id: UUID,
    user_email: str = Query(..., alias="userEmail", min_length=1),
    db: AsyncSession = Depends(get_db),
    identity: Optional[SessionIdentity] = Depends(get_session_identity),
):
    bind_email(identity, user_email)
    return await registry.resolve_by_adoption(db, adoption_id, user_email)


@conversations_router.get("/{conversation_id}/messages", response_model=MessageHistory)
async def get_conversation_messages(
    conversation_id: UUID,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=delivery.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    identity: Optional[SessionIdentity] = Depends(get_session_identity),
):
    if identity is not None:
        conversation = await delivery.get_conversation(db, conversation_id)
        delivery.resolve_role(conversation, identity.email)
    return await delivery.list_messages(db, conversation_id, page=page, limit=limit)


@conversations_router.put("/{conversation_id}/read", response_model=MarkReadResponse)
async def mark_conversation_read(
    conversation_id: UUID,
    payload: MarkReadRequest,
    db: AsyncSession = Depends(get_db),
    router: RoomRouter = Depends(get_room_router),
    identity: Optional[SessionIdentity] = Depends(get_session_identity),
):
    bind_email(identity, payload.user_email)
    updated = await delivery.mark_read(db, router, conversation_id, payload.user_email)
    return MarkReadResponse(message="Messages marked as read", updated=updated)
