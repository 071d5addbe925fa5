"""
Read models for records owned by the adoption service.

The chat service never writes these tables; it reads the adoption request's
status and applicant fields and the pet's recorded owner when seeding a
conversation.
"""

from enum import Enum

from sqlalchemy import Column, ForeignKey, String, Uuid

from ..db import Base
from .base import TimestampMixin, UUIDMixin


class AdoptionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class Pet(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "pets"

    name = Column(String(255), nullable=False)
    owner_full_name = Column(String(255), nullable=True)
    owner_email = Column(String(320), nullable=True)


class AdoptionRequest(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "adoption_requests"

    pet_id = Column(Uuid(as_uuid=True), ForeignKey("pets.id"), nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    email = Column(String(320), nullable=False)
    status = Column(
        String(16), nullable=False, default=AdoptionStatus.PENDING.value, index=True
    )
