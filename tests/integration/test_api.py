"""
Integration tests for the REST surface.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import status
from jose import jwt

from petpal_chat_service.config import settings
from petpal_chat_service.models import AdoptionStatus

pytestmark = pytest.mark.integration


async def open_chat(client, adoption, email="requester@example.com"):
    response = await client.get(
        f"/conversations/by-adoption/{adoption.id}", params={"userEmail": email}
    )
    assert response.status_code == status.HTTP_200_OK, response.text
    return response.json()


async def post_message(client, conversation_id, who, content):
    return await client.post(
        "/messages",
        json={
            "conversationId": conversation_id,
            "content": content,
            "senderEmail": who["email"],
            "senderName": who["name"],
        },
    )


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "ok", "liveConnections": 0}


@pytest.mark.asyncio
async def test_adoption_chat_flow(client, adoption_factory, room_router, make_connection, participants):
    adoption = await adoption_factory()

    # Approval seeds the conversation
    response = await client.post(
        "/adoption-events",
        json={"adoptionRequestId": str(adoption.id), "status": "approved"},
    )
    assert response.status_code == status.HTTP_200_OK
    event_result = response.json()
    assert event_result["chatCreated"] is True
    assert event_result["error"] is None
    conversation_id = event_result["conversationId"]

    chat = await open_chat(client, adoption)
    assert chat["id"] == conversation_id
    assert chat["userRole"] == "requester"
    assert chat["unreadCount"] == 1
    assert chat["lastMessage"]["sender"] == "system"

    owner_conn = make_connection()
    room_router.register(owner_conn)
    room_router.join(owner_conn.id, conversation_id)

    response = await post_message(client, conversation_id, participants["requester"], "Is Bella good with cats?")
    assert response.status_code == status.HTTP_201_CREATED
    sent = response.json()
    assert sent["sequence"] == 2
    assert sent["senderRole"] == "requester"
    assert sent["read"] is False
    assert owner_conn.of_type("message")[0]["id"] == sent["id"]

    # The owner sees one unread message from the requester plus the welcome message
    response = await client.get("/conversations", params={"email": "owner@example.com"})
    assert response.status_code == status.HTTP_200_OK
    [summary] = response.json()
    assert summary["userRole"] == "owner"
    assert summary["unreadCount"] == 2
    assert summary["lastMessage"]["content"] == "Is Bella good with cats?"
    assert summary["requester"] == {"email": "requester@example.com", "name": "Rachel Requester"}

    response = await client.put(
        f"/conversations/{conversation_id}/read", json={"userEmail": "owner@example.com"}
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"message": "Messages marked as read", "updated": 2}
    assert owner_conn.of_type("read") == [
        {"conversationId": conversation_id, "readerEmail": "owner@example.com"}
    ]

    response = await client.get(f"/conversations/{conversation_id}/messages")
    assert response.status_code == status.HTTP_200_OK
    history = response.json()
    assert [m["sequence"] for m in history["messages"]] == [1, 2]
    assert all(m["read"] for m in history["messages"])
    assert history["pagination"] == {"page": 1, "limit": 50, "hasMore": False}
    assert history["conversation"]["id"] == conversation_id


@pytest.mark.asyncio
async def test_stranger_cannot_send(client, adoption_factory, participants):
    adoption = await adoption_factory()
    chat = await open_chat(client, adoption)

    response = await post_message(client, chat["id"], participants["stranger"], "Let me in")

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["code"] == "Forbidden"

    history = (await client.get(f"/conversations/{chat['id']}/messages")).json()
    assert len(history["messages"]) == 1


@pytest.mark.asyncio
async def test_blank_message_is_rejected(client, adoption_factory, participants):
    adoption = await adoption_factory()
    chat = await open_chat(client, adoption)

    response = await post_message(client, chat["id"], participants["owner"], "   ")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["code"] == "InvalidInput"


@pytest.mark.asyncio
async def test_pending_adoption_has_no_chat(client, adoption_factory):
    adoption = await adoption_factory(status=AdoptionStatus.PENDING)

    response = await client.get(
        f"/conversations/by-adoption/{adoption.id}",
        params={"userEmail": "requester@example.com"},
    )

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["code"] == "InvalidState"


@pytest.mark.asyncio
async def test_approval_with_incomplete_owner_reports_error(client, adoption_factory):
    adoption = await adoption_factory(owner_email="")

    response = await client.post(
        "/adoption-events",
        json={"adoptionRequestId": str(adoption.id), "status": "approved"},
    )

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["chatCreated"] is False
    assert body["conversationId"] is None
    assert body["error"] == "Pet owner information is incomplete"

    response = await client.get(
        f"/conversations/by-adoption/{adoption.id}",
        params={"userEmail": "requester@example.com"},
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["code"] == "IncompleteOwnerData"


@pytest.mark.asyncio
async def test_unknown_conversation(client):
    response = await client.get(f"/conversations/{uuid.uuid4()}/messages")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["code"] == "NotFound"


@pytest.mark.asyncio
async def test_history_pagination(client, adoption_factory, participants):
    adoption = await adoption_factory()
    chat = await open_chat(client, adoption)
    for i in range(4):
        response = await post_message(client, chat["id"], participants["owner"], f"update {i}")
        assert response.status_code == status.HTTP_201_CREATED

    page_one = (await client.get(f"/conversations/{chat['id']}/messages", params={"limit": 3})).json()
    page_two = (
        await client.get(f"/conversations/{chat['id']}/messages", params={"limit": 3, "page": 2})
    ).json()

    assert [m["sequence"] for m in page_one["messages"]] == [3, 4, 5]
    assert page_one["pagination"]["hasMore"] is True
    assert [m["sequence"] for m in page_two["messages"]] == [1, 2]
    assert page_two["pagination"]["hasMore"] is False


@pytest.mark.asyncio
async def test_missing_email_is_a_validation_error(client):
    response = await client.get("/conversations")

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
async def test_session_binding(client, adoption_factory, participants, monkeypatch):
    monkeypatch.setattr(settings, "AUTH_JWT_SECRET_KEY", "binding-secret")
    adoption = await adoption_factory()

    def bearer(email):
        now = datetime.now(tz=timezone.utc)
        token = jwt.encode(
            {"email": email, "exp": int((now + timedelta(minutes=5)).timestamp())},
            "binding-secret",
            algorithm="HS256",
        )
        return {"Authorization": f"Bearer {token}"}

    response = await client.get("/conversations", params={"email": "requester@example.com"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

    response = await client.get(
        "/conversations",
        params={"email": "requester@example.com"},
        headers=bearer("owner@example.com"),
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = await client.get(
        f"/conversations/by-adoption/{adoption.id}",
        params={"userEmail": "requester@example.com"},
        headers=bearer("requester@example.com"),
    )
    assert response.status_code == status.HTTP_200_OK

    response = await client.get(
        f"/conversations/{response.json()['id']}/messages",
        headers=bearer("stranger@example.com"),
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN
