from .api import ChatApiClient, ChatApiError
from .live import LiveChannel
from .notifications import Notification, NotificationAggregator
from .pending import InvalidTransition, PendingMessage, PendingState
from .session import ChatSession, SendFailed

__all__ = [
    "ChatApiClient",
    "ChatApiError",
    "ChatSession",
    "InvalidTransition",
    "LiveChannel",
    "Notification",
    "NotificationAggregator",
    "PendingMessage",
    "PendingState",
    "SendFailed",
]
