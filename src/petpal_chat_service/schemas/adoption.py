from __future__ import annotations

from typing import Optional
from uuid import UUID

from ..models import AdoptionStatus
from .conversation import CamelModel


class AdoptionStatusEvent(CamelModel):
    adoption_request_id: UUID
    status: AdoptionStatus


class AdoptionEventResult(CamelModel):
    adoption_request_id: UUID
    status: AdoptionStatus
    chat_created: bool = False
    conversation_id: Optional[UUID] = None
    error: Optional[str] = None
