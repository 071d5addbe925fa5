from fastapi import Request, WebSocket

from .room_router import Connection, RoomRouter, WebSocketConnection


def get_room_router(request: Request) -> RoomRouter:
    """FastAPI dependency returning the application's room router."""
    return request.app.state.room_router


def get_ws_room_router(websocket: WebSocket) -> RoomRouter:
    return websocket.app.state.room_router


__all__ = [
    "Connection",
    "RoomRouter",
    "WebSocketConnection",
    "get_room_router",
    "get_ws_room_router",
]
