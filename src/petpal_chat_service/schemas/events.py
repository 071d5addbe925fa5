"""
Envelopes for the live event channel.

Every frame is a JSON object ``{"type": <event>, "data": {...}}``.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Union
from uuid import UUID

from pydantic import BaseModel, Field, TypeAdapter

from .conversation import CamelModel

# Server -> client
EVENT_CONNECTED = "connected"
EVENT_JOINED = "joined"
EVENT_LEFT = "left"
EVENT_MESSAGE = "message"
EVENT_READ = "read"
EVENT_ERROR = "error"

# Client -> server
EVENT_JOIN = "join"
EVENT_JOIN_ALL = "joinAll"
EVENT_LEAVE = "leave"


class RoomRef(CamelModel):
    conversation_id: UUID


class RoomRefs(CamelModel):
    conversation_ids: List[UUID] = Field(default_factory=list)


class JoinEvent(BaseModel):
    type: Literal["join"]
    data: RoomRef


class JoinAllEvent(BaseModel):
    type: Literal["joinAll"]
    data: RoomRefs


class LeaveEvent(BaseModel):
    type: Literal["leave"]
    data: RoomRef


ClientEvent = Annotated[
    Union[JoinEvent, JoinAllEvent, LeaveEvent], Field(discriminator="type")
]

client_event_adapter: TypeAdapter = TypeAdapter(ClientEvent)


class ServerEvent(BaseModel):
    type: str
    data: Dict[str, Any] = Field(default_factory=dict)


def envelope(event_type: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Build a JSON-ready server event."""
    return ServerEvent(type=event_type, data=data).model_dump(mode="json")
