"""
Delivery and read tracking for conversation messages.

Messages are persisted first and fanned out second: a send is complete once
the row is committed, whatever happens to the live delivery afterwards.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from ..config import settings
from ..errors import Forbidden, InvalidInput, NotFound
from ..logging_config import logger
from ..models import Conversation, Message, ParticipantRole, normalize_email
from ..models.base import utcnow
from ..realtime import RoomRouter
from ..schemas import (
    ConversationRead,
    ConversationSummary,
    MessageHistory,
    MessageRead,
    Pagination,
)
from ..schemas.events import EVENT_MESSAGE, EVENT_READ

MAX_PAGE_SIZE = 200


def resolve_role(conversation: Conversation, email: Optional[str]) -> ParticipantRole:
    """Return the caller's participant slot or raise Forbidden."""
    role = conversation.role_for(email)
    if role is None:
        raise Forbidden("You don't have access to this conversation")
    return role


async def get_conversation(db: AsyncSession, conversation_id: UUID) -> Conversation:
    conversation = await db.get(Conversation, conversation_id)
    if conversation is None:
        raise NotFound(f"Conversation {conversation_id} not found")
    return conversation


async def _allocate_sequence(db: AsyncSession, conversation: Conversation) -> int:
    # Atomic increment; the row lock serializes concurrent senders
    result = await db.execute(
        update(Conversation)
        .where(Conversation.id == conversation.id)
        .values(message_count=Conversation.message_count + 1)
        .returning(Conversation.message_count)
        .execution_options(synchronize_session=False)
    )
    sequence = result.scalar_one()
    set_committed_value(conversation, "message_count", sequence)
    return sequence


def serialize_message(message: Message) -> dict:
    return MessageRead.model_validate(message).model_dump(mode="json", by_alias=True)


async def send_message(
    db: AsyncSession,
    router: Optional[RoomRouter],
    conversation_id: UUID,
    sender_email: str,
    sender_name: str,
    content: str,
) -> Message:
    """
    Persist a participant's message and fan it out to the conversation room.

    Raises:
        NotFound: unknown conversation
        Forbidden: sender matches neither participant slot (nothing persisted)
        InvalidInput: content is blank or longer than MAX_MESSAGE_LENGTH
    """
    conversation = await get_conversation(db, conversation_id)
    role = resolve_role(conversation, sender_email)

    text = (content or "").strip()
    if not text:
        raise InvalidInput("Message content must not be empty")
    if len(text) > settings.MAX_MESSAGE_LENGTH:
        raise InvalidInput(
            f"Message content exceeds {settings.MAX_MESSAGE_LENGTH} characters"
        )

    sequence = await _allocate_sequence(db, conversation)
    now = utcnow()
    message = Message(
        conversation_id=conversation.id,
        sequence=sequence,
        sender_role=role.value,
        sender_email=normalize_email(sender_email),
        sender_name=sender_name.strip() or sender_email,
        content=text,
        created_at=now,
        read=False,
    )
    db.add(message)

    conversation.last_message_content = text
    conversation.last_message_sender = role.value
    conversation.last_message_at = now

    await db.commit()
    logger.info(
        "Message %s (#%d) stored in conversation %s from %s",
        message.id,
        sequence,
        conversation.id,
        role.value,
    )

    if router is not None:
        await router.emit(conversation.id, EVENT_MESSAGE, serialize_message(message))
    return message


async def mark_read(
    db: AsyncSession,
    router: Optional[RoomRouter],
    conversation_id: UUID,
    reader_email: str,
) -> int:
    """
    Flip every unread message not authored by the reader to read.

    Emits a room-wide ``read`` event only when something changed, so repeated
    calls are silent no-ops. Returns the number of messages updated.
    """
    conversation = await get_conversation(db, conversation_id)
    resolve_role(conversation, reader_email)
    reader = normalize_email(reader_email)

    result = await db.execute(
        update(Message)
        .where(
            Message.conversation_id == conversation.id,
            Message.sender_email != reader,
            Message.read == False,  # noqa: E712
        )
        .values(read=True)
        .execution_options(synchronize_session="evaluate")
    )
    changed = result.rowcount or 0
    await db.commit()

    if changed:
        logger.info("Marked %d messages read in %s for %s", changed, conversation.id, reader)
        if router is not None:
            await router.emit(
                conversation.id,
                EVENT_READ,
                {"conversationId": str(conversation.id), "readerEmail": reader},
            )
    return changed


async def count_unread(db: AsyncSession, conversation_id: UUID, user_email: str) -> int:
    counts = await _unread_counts(db, [conversation_id], user_email)
    return counts.get(conversation_id, 0)


async def _unread_counts(
    db: AsyncSession, conversation_ids: Iterable[UUID], user_email: str
) -> Dict[UUID, int]:
    ids = list(conversation_ids)
    if not ids:
        return {}
    result = await db.execute(
        select(Message.conversation_id, func.count(Message.id))
        .where(
            Message.conversation_id.in_(ids),
            Message.read.is_(False),
            Message.sender_email != normalize_email(user_email),
        )
        .group_by(Message.conversation_id)
    )
    return {conversation_id: count for conversation_id, count in result.all()}


async def list_conversations(db: AsyncSession, user_email: str) -> List[ConversationSummary]:
    """
    Conversations the user participates in, most recently active first.

    Conversations without any message sort last.
    """
    email = normalize_email(user_email)
    if not email:
        raise InvalidInput("Email is required")

    result = await db.execute(
        select(Conversation)
        .where(or_(Conversation.requester_email == email, Conversation.owner_email == email))
        .order_by(
            Conversation.last_message_at.desc().nulls_last(),
            Conversation.created_at.desc(),
        )
    )
    conversations = result.scalars().all()
    counts = await _unread_counts(db, [c.id for c in conversations], email)

    return [
        ConversationSummary.from_model(
            conv,
            unread_count=counts.get(conv.id, 0),
            user_role=resolve_role(conv, email),
        )
        for conv in conversations
    ]


async def list_messages(
    db: AsyncSession,
    conversation_id: UUID,
    page: int = 1,
    limit: Optional[int] = None,
) -> MessageHistory:
    """
    One page of history, oldest first within the page.

    Page 1 holds the newest messages; higher pages walk back in time.
    """
    conversation = await get_conversation(db, conversation_id)
    page = max(page, 1)
    limit = min(max(limit or settings.HISTORY_PAGE_SIZE, 1), MAX_PAGE_SIZE)

    result = await db.execute(
        select(Message)
        .where(Message.conversation_id == conversation.id)
        .order_by(Message.created_at.desc(), Message.sequence.desc())
        .offset((page - 1) * limit)
        .limit(limit + 1)
    )
    rows = list(result.scalars().all())
    has_more = len(rows) > limit
    rows = rows[:limit]
    rows.reverse()

    return MessageHistory(
        messages=[MessageRead.model_validate(m) for m in rows],
        conversation=ConversationRead.from_model(conversation),
        pagination=Pagination(page=page, limit=limit, has_more=has_more),
    )
