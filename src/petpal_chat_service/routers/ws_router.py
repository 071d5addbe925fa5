from __future__ import annotations

import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError

from ..logging_config import logger
from ..realtime import RoomRouter, WebSocketConnection, get_ws_room_router
from ..schemas.events import (
    EVENT_CONNECTED,
    EVENT_ERROR,
    EVENT_JOINED,
    EVENT_LEFT,
    JoinAllEvent,
    JoinEvent,
    LeaveEvent,
    client_event_adapter,
    envelope,
)
from ..security import AuthError, authenticate_websocket

ws_router = APIRouter(tags=["WebSocket"])


@ws_router.websocket("/ws")
async def chat_websocket(websocket: WebSocket):
    # Enforce session auth (when enabled) before accepting the connection
    try:
        identity = authenticate_websocket(websocket)
    except AuthError as e:
        logger.info("Rejected live connection: %s", e)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    router = get_ws_room_router(websocket)
    connection_id = uuid.uuid4().hex

    await websocket.accept()
    router.register(WebSocketConnection(connection_id, websocket))
    logger.info(
        "Live connection %s opened%s",
        connection_id,
        f" for {identity.email}" if identity else "",
    )
    try:
        await websocket.send_json(envelope(EVENT_CONNECTED, {"connectionId": connection_id}))
        while True:
            raw = await websocket.receive_text()
            await _handle_client_event(router, websocket, connection_id, raw)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("Live connection %s failed", connection_id)
    finally:
        rooms = router.disconnect(connection_id)
        logger.info("Live connection %s closed (%d rooms released)", connection_id, len(rooms))


async def _handle_client_event(
    router: RoomRouter, websocket: WebSocket, connection_id: str, raw: str
) -> None:
    try:
        event = client_event_adapter.validate_json(raw)
    except ValidationError as e:
        errors = [err["msg"] for err in e.errors()]
        await websocket.send_json(
            envelope(EVENT_ERROR, {"detail": "Malformed event", "errors": errors})
        )
        return

    if isinstance(event, JoinEvent):
        router.join(connection_id, event.data.conversation_id)
        await websocket.send_json(
            envelope(EVENT_JOINED, {"conversationIds": [str(event.data.conversation_id)]})
        )
    elif isinstance(event, JoinAllEvent):
        ids = event.data.conversation_ids
        router.join_all(connection_id, ids)
        await websocket.send_json(
            envelope(EVENT_JOINED, {"conversationIds": [str(i) for i in ids]})
        )
    elif isinstance(event, LeaveEvent):
        router.leave(connection_id, event.data.conversation_id)
        await websocket.send_json(
            envelope(EVENT_LEFT, {"conversationId": str(event.data.conversation_id)})
        )
