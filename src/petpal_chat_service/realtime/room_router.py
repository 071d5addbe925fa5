from __future__ import annotations

from typing import Any, Dict, FrozenSet, Iterable, List, Protocol, Set, Union
from uuid import UUID

from fastapi import WebSocket

from ..logging_config import logger
from ..schemas.events import envelope

RoomKey = Union[str, UUID]


class Connection(Protocol):
    id: str

    async def send_json(self, data: Dict[str, Any]) -> None: ...


class WebSocketConnection:
    """A live client socket registered with the router."""

    def __init__(self, connection_id: str, websocket: WebSocket):
        self.id = connection_id
        self.websocket = websocket

    async def send_json(self, data: Dict[str, Any]) -> None:
        await self.websocket.send_json(data)


class RoomRouter:
    """
    Maps live connections to the conversation rooms they subscribe to.

    Used only for fan-out: membership grants nothing, access control lives in
    the REST layer. State is process-local and mutated from the event loop
    only. Delivery is best effort, at most once per connection subscribed at
    emit time.
    """

    def __init__(self) -> None:
        self._connections: Dict[str, Connection] = {}
        # connection_id -> conversation ids
        self._subscriptions: Dict[str, Set[str]] = {}
        # conversation_id -> connection ids
        self._rooms: Dict[str, Set[str]] = {}

    def register(self, connection: Connection) -> None:
        self._connections[connection.id] = connection
        self._subscriptions.setdefault(connection.id, set())

    def is_registered(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def join(self, connection_id: str, conversation_id: RoomKey) -> bool:
        """Subscribe a connection to a room. Returns False if already joined."""
        if connection_id not in self._connections:
            logger.warning("join for unknown connection %s ignored", connection_id)
            return False
        room = str(conversation_id)
        subs = self._subscriptions[connection_id]
        if room in subs:
            return False
        subs.add(room)
        self._rooms.setdefault(room, set()).add(connection_id)
        return True

    def join_all(self, connection_id: str, conversation_ids: Iterable[RoomKey]) -> List[str]:
        """Bulk join; returns the rooms that were newly joined."""
        joined = []
        for conversation_id in conversation_ids:
            if self.join(connection_id, conversation_id):
                joined.append(str(conversation_id))
        return joined

    def leave(self, connection_id: str, conversation_id: RoomKey) -> bool:
        room = str(conversation_id)
        subs = self._subscriptions.get(connection_id)
        if not subs or room not in subs:
            return False
        subs.discard(room)
        self._discard_member(room, connection_id)
        return True

    def disconnect(self, connection_id: str) -> Set[str]:
        """Forget a connection and every subscription it held."""
        self._connections.pop(connection_id, None)
        rooms = self._subscriptions.pop(connection_id, set())
        for room in rooms:
            self._discard_member(room, connection_id)
        return rooms

    def subscriptions(self, connection_id: str) -> FrozenSet[str]:
        return frozenset(self._subscriptions.get(connection_id, ()))

    def members(self, conversation_id: RoomKey) -> FrozenSet[str]:
        return frozenset(self._rooms.get(str(conversation_id), ()))

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def emit(self, conversation_id: RoomKey, event_type: str, data: Dict[str, Any]) -> int:
        """
        Send an event to every connection currently in the room.

        A connection that fails mid-send is dropped; the failure never
        propagates to the caller. Returns the number of successful deliveries.
        """
        room = str(conversation_id)
        frame = envelope(event_type, data)
        delivered = 0
        for connection_id in list(self._rooms.get(room, ())):
            connection = self._connections.get(connection_id)
            if connection is None:
                continue
            try:
                await connection.send_json(frame)
                delivered += 1
            except Exception as e:
                logger.warning(
                    "Dropping connection %s after failed %s emit to %s: %s",
                    connection_id,
                    event_type,
                    room,
                    e,
                )
                self.disconnect(connection_id)
        logger.debug("Emitted %s to %s (%d delivered)", event_type, room, delivered)
        return delivered

    def _discard_member(self, room: str, connection_id: str) -> None:
        members = self._rooms.get(room)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self._rooms[room]
