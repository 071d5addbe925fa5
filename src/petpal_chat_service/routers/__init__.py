from .adoption_events_router import adoption_events_router
from .conversations_router import conversations_router
from .health_router import health_router
from .messages_router import messages_router
from .ws_router import ws_router

__all__ = [
    "adoption_events_router",
    "conversations_router",
    "health_router",
    "messages_router",
    "ws_router",
]
