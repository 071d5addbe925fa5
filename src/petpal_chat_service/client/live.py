"""
Live event channel client.

Holds one WebSocket to the service's ``/ws`` endpoint, sends room membership
events and yields decoded server events. When the socket drops it reconnects
with bounded exponential backoff; room memberships do not survive that, so a
reconnect callback is invoked after every successful re-connect.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Iterable, Optional

from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake

logger = logging.getLogger(__name__)

ReconnectCallback = Callable[[], Awaitable[None]]


def http_to_ws(url: str) -> str:
    if url.startswith("https://"):
        return "wss://" + url[len("https://") :]
    if url.startswith("http://"):
        return "ws://" + url[len("http://") :]
    return url


class LiveChannel:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        initial_backoff: float = 0.5,
        max_backoff: float = 30.0,
        open_timeout: float = 10.0,
        on_reconnect: Optional[ReconnectCallback] = None,
    ):
        self.url = http_to_ws(base_url.rstrip("/")) + "/ws"
        self.headers = {"Authorization": f"Bearer {token}"} if token else None
        self.initial_backoff = initial_backoff
        self.max_backoff = max_backoff
        self.open_timeout = open_timeout
        self.on_reconnect = on_reconnect
        self.connection_id: Optional[str] = None
        self._ws = None
        self._closed = False

    @property
    def connected(self) -> bool:
        return self._ws is not None

    async def connect(self) -> None:
        self._closed = False
        self._ws = await ws_connect(
            self.url, additional_headers=self.headers, open_timeout=self.open_timeout
        )
        logger.info("Live channel connected to %s", self.url)

    async def close(self) -> None:
        self._closed = True
        if self._ws is not None:
            await self._ws.close()
            self._ws = None

    async def send_event(self, event_type: str, data: Dict[str, Any]) -> None:
        if self._ws is None:
            raise ConnectionError("Live channel is not connected")
        await self._ws.send(json.dumps({"type": event_type, "data": data}))

    async def join(self, conversation_id) -> None:
        await self.send_event("join", {"conversationId": str(conversation_id)})

    async def join_all(self, conversation_ids: Iterable) -> None:
        await self.send_event("joinAll", {"conversationIds": [str(i) for i in conversation_ids]})

    async def leave(self, conversation_id) -> None:
        await self.send_event("leave", {"conversationId": str(conversation_id)})

    async def events(self) -> AsyncIterator[Dict[str, Any]]:
        """Yield server events until ``close()`` is called."""
        while not self._closed:
            if self._ws is None:
                await self._reconnect()
                continue
            try:
                raw = await self._ws.recv()
            except ConnectionClosed as e:
                self._ws = None
                if self._closed:
                    break
                logger.warning("Live channel dropped (%s); reconnecting", e)
                continue

            try:
                event = json.loads(raw)
            except ValueError:
                logger.warning("Ignoring undecodable live event: %r", raw)
                continue
            if event.get("type") == "connected":
                self.connection_id = (event.get("data") or {}).get("connectionId")
            yield event

    async def _reconnect(self) -> None:
        delay = self.initial_backoff
        attempt = 0
        while not self._closed:
            attempt += 1
            try:
                await self.connect()
            except (OSError, asyncio.TimeoutError, InvalidHandshake) as e:
                logger.warning(
                    "Live channel reconnect attempt %d failed: %s (retrying in %.1fs)",
                    attempt,
                    e,
                    delay,
                )
                await asyncio.sleep(delay)
                delay = min(delay * 2, self.max_backoff)
                continue
            if self.on_reconnect is not None:
                await self.on_reconnect()
            return
