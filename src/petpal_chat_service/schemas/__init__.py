from .adoption import AdoptionEventResult, AdoptionStatusEvent
from .conversation import (
    ConversationRead,
    ConversationSummary,
    LastMessageSummary,
    MarkReadRequest,
    MarkReadResponse,
    MessageCreate,
    MessageHistory,
    MessageRead,
    Pagination,
    ParticipantRead,
)
from .events import ClientEvent, ServerEvent, client_event_adapter, envelope

__all__ = [
    "AdoptionEventResult",
    "AdoptionStatusEvent",
    "ConversationRead",
    "ConversationSummary",
    "LastMessageSummary",
    "MarkReadRequest",
    "MarkReadResponse",
    "MessageCreate",
    "MessageHistory",
    "MessageRead",
    "Pagination",
    "ParticipantRead",
    "ClientEvent",
    "ServerEvent",
    "client_event_adapter",
    "envelope",
]
