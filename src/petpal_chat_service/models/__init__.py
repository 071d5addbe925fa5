from .adoption import AdoptionRequest, AdoptionStatus, Pet
from .conversation import Conversation, ConversationStatus, ParticipantRole, normalize_email
from .message import SYSTEM_SENDER_ROLE, Message

__all__ = [
    "AdoptionRequest",
    "AdoptionStatus",
    "Pet",
    "Conversation",
    "ConversationStatus",
    "ParticipantRole",
    "normalize_email",
    "Message",
    "SYSTEM_SENDER_ROLE",
]
