"""
Integration tests for the WebSocket live channel.
"""

import uuid

import pytest
from starlette.websockets import WebSocketDisconnect

from petpal_chat_service.config import settings

pytestmark = pytest.mark.integration


def test_connect_join_and_leave(ws_client, room_router):
    room_a, room_b = str(uuid.uuid4()), str(uuid.uuid4())

    with ws_client.websocket_connect("/ws") as ws:
        connected = ws.receive_json()
        assert connected["type"] == "connected"
        connection_id = connected["data"]["connectionId"]
        assert room_router.is_registered(connection_id)

        ws.send_json({"type": "joinAll", "data": {"conversationIds": [room_a, room_b]}})
        assert ws.receive_json() == {"type": "joined", "data": {"conversationIds": [room_a, room_b]}}
        assert room_router.subscriptions(connection_id) == frozenset({room_a, room_b})

        ws.send_json({"type": "leave", "data": {"conversationId": room_a}})
        assert ws.receive_json() == {"type": "left", "data": {"conversationId": room_a}}

        ws.send_json({"type": "join", "data": {"conversationId": room_a}})
        assert ws.receive_json() == {"type": "joined", "data": {"conversationIds": [room_a]}}
        assert room_router.members(room_a) == frozenset({connection_id})

    # Memberships are released with the connection
    assert not room_router.is_registered(connection_id)
    assert room_router.members(room_a) == frozenset()


def test_malformed_event_keeps_socket_open(ws_client):
    with ws_client.websocket_connect("/ws") as ws:
        ws.receive_json()

        ws.send_text("not json")
        error = ws.receive_json()
        assert error["type"] == "error"
        assert error["data"]["detail"] == "Malformed event"

        ws.send_json({"type": "join", "data": {"conversationId": "not-a-uuid"}})
        assert ws.receive_json()["type"] == "error"

        ws.send_json({"type": "shout", "data": {}})
        assert ws.receive_json()["type"] == "error"

        room = str(uuid.uuid4())
        ws.send_json({"type": "join", "data": {"conversationId": room}})
        assert ws.receive_json()["data"] == {"conversationIds": [room]}


def test_live_channel_requires_token_when_binding_enabled(ws_client, monkeypatch):
    monkeypatch.setattr(settings, "AUTH_JWT_SECRET_KEY", "binding-secret")

    with pytest.raises(WebSocketDisconnect) as exc_info:
        with ws_client.websocket_connect("/ws") as ws:
            ws.receive_json()

    assert exc_info.value.code == 1008
