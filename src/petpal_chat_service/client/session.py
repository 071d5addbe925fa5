"""
Client-side chat session controller.

Drives one user's view of their adoption chats: the conversation list, the
active conversation's timeline, optimistic sends and unread notifications
for conversations that are not on screen.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from .api import ChatApiClient, ChatApiError
from .live import LiveChannel
from .notifications import NotificationAggregator
from .pending import PendingMessage, PendingState

logger = logging.getLogger(__name__)

DEFAULT_SEND_TIMEOUT = 10.0


class SendFailed(Exception):
    """An optimistic send was rejected or timed out."""

    def __init__(self, pending: PendingMessage, error: BaseException):
        self.pending = pending
        self.error = error
        super().__init__(f"Message {pending.temp_id} was not delivered: {error}")


class ChatSession:
    def __init__(
        self,
        api: ChatApiClient,
        channel: LiveChannel,
        user_email: str,
        user_name: str,
        notifications: Optional[NotificationAggregator] = None,
        send_timeout: float = DEFAULT_SEND_TIMEOUT,
    ):
        self.api = api
        self.channel = channel
        self.user_email = user_email.strip().lower()
        self.user_name = user_name
        self.notifications = notifications or NotificationAggregator()
        self.send_timeout = send_timeout

        self.conversations: Dict[str, Dict[str, Any]] = {}
        self.active_id: Optional[str] = None
        self.history: Dict[str, Any] = {}
        self._timeline: List[Dict[str, Any]] = []
        self._pending: Dict[str, PendingMessage] = {}

    # Views

    @property
    def conversation_list(self) -> List[Dict[str, Any]]:
        """Conversations, most recent activity first."""
        def sort_key(conv: Dict[str, Any]):
            last = conv.get("lastMessage") or {}
            return last.get("timestamp") or conv.get("createdAt") or ""

        return sorted(self.conversations.values(), key=sort_key, reverse=True)

    @property
    def timeline(self) -> List[Dict[str, Any]]:
        """Confirmed messages of the active conversation followed by in-flight sends."""
        in_flight = [
            self._pending_view(p)
            for p in self._pending.values()
            if p.state is PendingState.PENDING and p.conversation_id == self.active_id
        ]
        return list(self._timeline) + in_flight

    @property
    def failed(self) -> List[PendingMessage]:
        return [p for p in self._pending.values() if p.state is PendingState.FAILED]

    # Lifecycle

    async def start(self) -> None:
        await self.refresh_conversations()
        if self.conversations:
            await self.channel.join_all(list(self.conversations))
        self.notifications.seed(
            {cid: conv.get("unreadCount", 0) for cid, conv in self.conversations.items()}
        )

    async def refresh_conversations(self) -> None:
        conversations = await self.api.list_conversations(self.user_email)
        self.conversations = {str(c["id"]): c for c in conversations}

    async def run(self) -> None:
        """Consume live events until the channel is closed."""
        async for event in self.channel.events():
            await self.handle_event(event)

    async def open_conversation(self, conversation_id) -> None:
        conversation_id = str(conversation_id)
        if self.active_id and self.active_id != conversation_id:
            await self.channel.leave(self.active_id)
        await self.channel.join(conversation_id)
        self.active_id = conversation_id
        await self._load_history()
        await self._mark_active_read()

    async def on_reconnect(self) -> None:
        logger.info("Live channel reconnected; restoring rooms for %s", self.user_email)
        await self.refresh_conversations()
        if self.conversations:
            await self.channel.join_all(list(self.conversations))
        if self.active_id:
            await self._load_history()

    # Live events

    async def handle_event(self, event: Dict[str, Any]) -> None:
        event_type = event.get("type")
        data = event.get("data") or {}
        if event_type == "message":
            await self._on_message(data)
        elif event_type == "read":
            self._on_read(data)
        elif event_type == "error":
            logger.warning("Live channel reported an error: %s", data.get("detail"))

    async def _on_message(self, message: Dict[str, Any]) -> None:
        conversation_id = str(message["conversationId"])
        self._update_summary(conversation_id, message)
        own = (message.get("senderEmail") or "").lower() == self.user_email

        if conversation_id == self.active_id:
            if own:
                self._reconcile_echo(message)
            else:
                self._add_to_timeline(message)
                await self._mark_active_read()
        elif not own:
            self.notifications.record(message)
            if conversation_id in self.conversations:
                self.conversations[conversation_id]["unreadCount"] = self.notifications.unread(
                    conversation_id
                )

    def _on_read(self, data: Dict[str, Any]) -> None:
        if str(data.get("conversationId")) != self.active_id:
            return
        if (data.get("readerEmail") or "").lower() == self.user_email:
            return
        for message in self._timeline:
            if (message.get("senderEmail") or "").lower() == self.user_email:
                message["read"] = True

    def _reconcile_echo(self, message: Dict[str, Any]) -> None:
        if self._find(message["id"]) is not None:
            return
        for pending in self._pending.values():
            if (
                pending.state is PendingState.PENDING
                and pending.conversation_id == str(message["conversationId"])
                and pending.content.strip() == message.get("content")
            ):
                self._confirm(pending, message)
                return
        # Sent from another connection of the same user
        self._add_to_timeline(message)

    # Sending

    async def send(self, content: str) -> Dict[str, Any]:
        if self.active_id is None:
            raise RuntimeError("No active conversation")
        pending = PendingMessage(
            conversation_id=self.active_id,
            content=content,
            sender_email=self.user_email,
            sender_name=self.user_name,
        )
        self._pending[pending.temp_id] = pending
        return await self._deliver(pending)

    async def retry(self, temp_id: str) -> Dict[str, Any]:
        pending = self._pending.get(temp_id)
        if pending is None:
            raise KeyError(temp_id)
        pending.retry()
        return await self._deliver(pending)

    async def _deliver(self, pending: PendingMessage) -> Dict[str, Any]:
        try:
            message = await asyncio.wait_for(
                self.api.send_message(
                    pending.conversation_id,
                    pending.content,
                    pending.sender_email,
                    pending.sender_name,
                ),
                timeout=self.send_timeout,
            )
        except (ChatApiError, asyncio.TimeoutError) as e:
            if pending.state is PendingState.CONFIRMED:
                # The live echo already confirmed it
                return self._find(pending.server_id)
            pending.fail(e)
            logger.warning("Send of %s failed: %r", pending.temp_id, e)
            raise SendFailed(pending, e) from e

        if pending.state is PendingState.PENDING:
            self._confirm(pending, message)
        self._update_summary(pending.conversation_id, message)
        return self._find(str(message["id"])) or message

    def _confirm(self, pending: PendingMessage, message: Dict[str, Any]) -> None:
        pending.confirm(message)
        self._pending.pop(pending.temp_id, None)
        if pending.conversation_id == self.active_id:
            self._add_to_timeline(message)

    # Helpers

    async def _load_history(self) -> None:
        self.history = await self.api.get_messages(self.active_id)
        self._timeline = list(self.history.get("messages", []))

    async def _mark_active_read(self) -> None:
        try:
            await self.api.mark_read(self.active_id, self.user_email)
        except ChatApiError as e:
            logger.warning("Could not mark %s read: %s", self.active_id, e)
            return
        self.notifications.clear(self.active_id)
        if self.active_id in self.conversations:
            self.conversations[self.active_id]["unreadCount"] = 0

    def _find(self, message_id) -> Optional[Dict[str, Any]]:
        message_id = str(message_id)
        for message in self._timeline:
            if str(message["id"]) == message_id:
                return message
        return None

    def _add_to_timeline(self, message: Dict[str, Any]) -> None:
        if self._find(message["id"]) is not None:
            return
        self._timeline.append(dict(message))
        self._timeline.sort(key=lambda m: (m.get("sequence") or 0, m.get("createdAt") or ""))

    def _update_summary(self, conversation_id: str, message: Dict[str, Any]) -> None:
        conv = self.conversations.get(conversation_id)
        if conv is None:
            return
        last = conv.get("lastMessage") or {}
        if last.get("timestamp") and message.get("createdAt") and last["timestamp"] > message["createdAt"]:
            return
        conv["lastMessage"] = {
            "content": message.get("content"),
            "sender": message.get("senderRole"),
            "timestamp": message.get("createdAt"),
        }

    @staticmethod
    def _pending_view(pending: PendingMessage) -> Dict[str, Any]:
        return {
            "id": pending.temp_id,
            "conversationId": pending.conversation_id,
            "senderEmail": pending.sender_email,
            "senderName": pending.sender_name,
            "content": pending.content,
            "createdAt": pending.created_at.isoformat(),
            "pending": True,
        }
