from .delivery import (
    count_unread,
    get_conversation,
    list_conversations,
    list_messages,
    mark_read,
    resolve_role,
    send_message,
    serialize_message,
)
from .registry import (
    ensure_conversation,
    get_conversation_for_adoption,
    handle_adoption_status_change,
    resolve_by_adoption,
)

__all__ = [
    "count_unread",
    "get_conversation",
    "list_conversations",
    "list_messages",
    "mark_read",
    "resolve_role",
    "send_message",
    "serialize_message",
    "ensure_conversation",
    "get_conversation_for_adoption",
    "handle_adoption_status_change",
    "resolve_by_adoption",
]
