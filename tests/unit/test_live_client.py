"""
Unit tests for the live channel client's reconnect loop, with the WebSocket
connector replaced by a scripted fake.
"""

import asyncio
import json

import pytest
from websockets.exceptions import ConnectionClosed

from petpal_chat_service.client import live
from petpal_chat_service.client.live import LiveChannel, http_to_ws


class ScriptedSocket:
    """Returns the given frames, then reports the connection as closed."""

    def __init__(self, frames):
        self.frames = [json.dumps(f) for f in frames]
        self.sent = []
        self.closed = False

    async def recv(self):
        if self.frames:
            return self.frames.pop(0)
        raise ConnectionClosed(None, None)

    async def send(self, raw):
        self.sent.append(json.loads(raw))

    async def close(self):
        self.closed = True


def connected_frame(connection_id):
    return {"type": "connected", "data": {"connectionId": connection_id}}


@pytest.fixture
def scripted_connect(monkeypatch):
    """Patch the connector; each call consumes the next scripted outcome."""
    outcomes = []
    urls = []

    async def fake_connect(url, **kwargs):
        urls.append(url)
        outcome = outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(live, "ws_connect", fake_connect)
    return outcomes, urls


@pytest.fixture
def recorded_sleeps(monkeypatch):
    delays = []
    real_sleep = asyncio.sleep

    async def fake_sleep(delay):
        delays.append(delay)
        await real_sleep(0)

    monkeypatch.setattr(live.asyncio, "sleep", fake_sleep)
    return delays


def test_http_to_ws():
    assert http_to_ws("https://chat.example.com/api/v1") == "wss://chat.example.com/api/v1"
    assert http_to_ws("http://localhost:8000") == "ws://localhost:8000"
    assert http_to_ws("ws://localhost:8000") == "ws://localhost:8000"


@pytest.mark.asyncio
async def test_reconnects_with_capped_backoff(scripted_connect, recorded_sleeps):
    outcomes, urls = scripted_connect
    first = ScriptedSocket([connected_frame("conn-1")])
    second = ScriptedSocket([connected_frame("conn-2")])
    outcomes.extend(
        [first, OSError("refused"), OSError("refused"), OSError("refused"), second]
    )
    reconnects = []

    async def on_reconnect():
        reconnects.append(channel.connection_id)

    channel = LiveChannel(
        "http://chat.test/api/v1/",
        initial_backoff=1.0,
        max_backoff=1.5,
        on_reconnect=on_reconnect,
    )
    await channel.connect()
    events = channel.events()

    event = await events.__anext__()
    assert event == connected_frame("conn-1")
    assert channel.connection_id == "conn-1"
    assert reconnects == []

    # The first socket drops; three attempts fail before the fourth succeeds
    event = await events.__anext__()
    assert event == connected_frame("conn-2")
    assert channel.connection_id == "conn-2"
    assert recorded_sleeps == [1.0, 1.5, 1.5]
    assert reconnects == ["conn-1"]
    assert urls == ["ws://chat.test/api/v1/ws"] * 5

    await channel.join_all(["c1", "c2"])
    assert second.sent == [{"type": "joinAll", "data": {"conversationIds": ["c1", "c2"]}}]

    await channel.close()
    assert second.closed is True
    assert channel.connected is False
    with pytest.raises(StopAsyncIteration):
        await events.__anext__()


@pytest.mark.asyncio
async def test_events_skip_undecodable_frames(scripted_connect):
    outcomes, _ = scripted_connect
    socket = ScriptedSocket([connected_frame("conn-1")])
    socket.frames.insert(0, "not json")
    outcomes.append(socket)

    channel = LiveChannel("http://chat.test")
    await channel.connect()
    events = channel.events()

    assert await events.__anext__() == connected_frame("conn-1")
    await channel.close()
    await events.aclose()


@pytest.mark.asyncio
async def test_send_requires_connection():
    channel = LiveChannel("http://chat.test")

    with pytest.raises(ConnectionError):
        await channel.join("c1")
