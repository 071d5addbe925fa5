"""
Conversation registry: one conversation per approved adoption request.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..errors import ChatServiceError, IncompleteOwnerData, InvalidState, NotFound
from ..logging_config import logger
from ..models import (
    SYSTEM_SENDER_ROLE,
    AdoptionRequest,
    AdoptionStatus,
    Conversation,
    Message,
    Pet,
    normalize_email,
)
from ..models.base import utcnow
from ..schemas import AdoptionEventResult, ConversationSummary
from .delivery import count_unread, resolve_role


def welcome_text(pet_name: str) -> str:
    return f"Chat created for adoption of {pet_name}. You can now communicate."


async def get_conversation_for_adoption(
    db: AsyncSession, adoption_request_id: UUID
) -> Optional[Conversation]:
    result = await db.execute(
        select(Conversation).where(Conversation.adoption_request_id == adoption_request_id)
    )
    return result.scalar_one_or_none()


async def ensure_conversation(db: AsyncSession, adoption_request_id: UUID) -> Conversation:
    """
    Return the conversation for an approved adoption request, creating it once.

    A new conversation is seeded with a system welcome message in the same
    transaction, so it is never empty.

    Raises:
        NotFound: the adoption request or its pet does not exist
        InvalidState: the adoption request is not approved
        IncompleteOwnerData: the pet has no usable owner name or email
    """
    existing = await get_conversation_for_adoption(db, adoption_request_id)
    if existing is not None:
        return existing

    adoption = await db.get(AdoptionRequest, adoption_request_id)
    if adoption is None:
        raise NotFound(f"Adoption request {adoption_request_id} not found")
    if adoption.status != AdoptionStatus.APPROVED.value:
        raise InvalidState("Chat is only available for approved adoptions")

    pet = await db.get(Pet, adoption.pet_id)
    if pet is None:
        raise NotFound(f"Pet {adoption.pet_id} not found")

    owner_email = normalize_email(pet.owner_email)
    owner_name = (pet.owner_full_name or "").strip()
    if not owner_email or not owner_name:
        logger.error(
            "Pet %s is missing owner contact data (email=%r, name=%r)",
            pet.id,
            pet.owner_email,
            pet.owner_full_name,
        )
        raise IncompleteOwnerData("Pet owner information is incomplete")

    now = utcnow()
    welcome = welcome_text(pet.name)
    conversation = Conversation(
        adoption_request_id=adoption.id,
        pet_id=pet.id,
        requester_email=normalize_email(adoption.email),
        requester_name=adoption.full_name.strip(),
        owner_email=owner_email,
        owner_name=owner_name,
        message_count=1,
        last_message_content=welcome,
        last_message_sender=SYSTEM_SENDER_ROLE,
        last_message_at=now,
    )
    db.add(conversation)
    try:
        await db.flush()
        db.add(
            Message(
                conversation_id=conversation.id,
                sequence=1,
                sender_role=SYSTEM_SENDER_ROLE,
                sender_email=settings.SYSTEM_SENDER_EMAIL,
                sender_name=settings.SYSTEM_SENDER_NAME,
                content=welcome,
                created_at=now,
                read=False,
            )
        )
        await db.commit()
    except IntegrityError:
        # Lost a creation race; the unique adoption reference picked the winner
        await db.rollback()
        winner = await get_conversation_for_adoption(db, adoption_request_id)
        if winner is None:
            raise
        logger.info("Conversation for adoption %s created concurrently", adoption_request_id)
        return winner

    logger.info(
        "Created conversation %s for adoption %s (pet %s)",
        conversation.id,
        adoption.id,
        pet.name,
    )
    return conversation


async def resolve_by_adoption(
    db: AsyncSession, adoption_request_id: UUID, user_email: str
) -> ConversationSummary:
    """Conversation summary for a participant, created on demand."""
    conversation = await ensure_conversation(db, adoption_request_id)
    role = resolve_role(conversation, user_email)
    unread = await count_unread(db, conversation.id, user_email)
    return ConversationSummary.from_model(conversation, unread_count=unread, user_role=role)


async def handle_adoption_status_change(
    db: AsyncSession, adoption_request_id: UUID, status: AdoptionStatus
) -> AdoptionEventResult:
    """
    Consume an adoption status change.

    Approval seeds the conversation. A registry failure is reported in the
    result instead of failing the event; the chat can still be created later
    through resolve-by-adoption.
    """
    result = AdoptionEventResult(adoption_request_id=adoption_request_id, status=status)
    if status is not AdoptionStatus.APPROVED:
        return result

    try:
        conversation = await ensure_conversation(db, adoption_request_id)
    except ChatServiceError as e:
        logger.error(
            "Adoption %s approved but chat creation failed: %s", adoption_request_id, e.detail
        )
        result.error = e.detail
        return result

    result.chat_created = True
    result.conversation_id = conversation.id
    return result
