"""
Integration tests for the REST client against the in-process app.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport

from petpal_chat_service.client import ChatApiClient, ChatApiError
from petpal_chat_service.models import AdoptionStatus

pytestmark = pytest.mark.integration


@pytest_asyncio.fixture
async def api(app):
    async with ChatApiClient("http://test", transport=ASGITransport(app=app)) as client:
        yield client


@pytest.mark.asyncio
async def test_client_round_trip(api, adoption_factory):
    adoption = await adoption_factory()

    chat = await api.resolve_by_adoption(adoption.id, "requester@example.com")
    assert chat["userRole"] == "requester"

    sent = await api.send_message(chat["id"], "Hi!", "requester@example.com", "Rachel Requester")
    assert sent["sequence"] == 2

    [summary] = await api.list_conversations("owner@example.com")
    assert summary["unreadCount"] == 2
    assert summary["lastMessage"]["content"] == "Hi!"

    result = await api.mark_read(chat["id"], "owner@example.com")
    assert result["updated"] == 2

    history = await api.get_messages(chat["id"], limit=1)
    assert [m["content"] for m in history["messages"]] == ["Hi!"]
    assert history["pagination"]["hasMore"] is True


@pytest.mark.asyncio
async def test_client_surfaces_errors(api, adoption_factory):
    adoption = await adoption_factory()
    chat = await api.resolve_by_adoption(adoption.id, "owner@example.com")

    with pytest.raises(ChatApiError) as exc_info:
        await api.send_message(chat["id"], "hello", "stranger@example.com", "Eve")

    assert exc_info.value.status_code == 403
    assert exc_info.value.code == "Forbidden"


@pytest.mark.asyncio
async def test_resolve_by_adoption_without_chat_returns_none(api, adoption_factory):
    pending = await adoption_factory(status=AdoptionStatus.PENDING)

    assert await api.resolve_by_adoption(pending.id, "requester@example.com") is None
