from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_db
from ..rate_limiting import SEND_MESSAGE_LIMIT, limiter
from ..realtime import RoomRouter, get_room_router
from ..schemas import MessageCreate, MessageRead
from ..security import SessionIdentity, bind_email, get_session_identity
from ..services import delivery

messages_router = APIRouter(prefix="/messages", tags=["Messages"])


@messages_router.post("", response_model=MessageRead, status_code=status.HTTP_201_CREATED)
@limiter.limit(SEND_MESSAGE_LIMIT)
async def send_message(
    request: Request,
    payload: MessageCreate,
    db: AsyncSession = Depends(get_db),
    router: RoomRouter = Depends(get_room_router),
    identity: Optional[SessionIdentity] = Depends(get_session_identity),
):
    bind_email(identity, payload.sender_email)
    return await delivery.send_message(
        db,
        router,
        payload.conversation_id,
        payload.sender_email,
        payload.sender_name,
        payload.content,
    )
