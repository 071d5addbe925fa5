"""
Test configuration for the PetPal Chat Service.

Each test gets a fresh SQLite database file; the app's database dependency
and room router are replaced so requests hit that database and fan out to
connections the test controls.
"""

import os
import uuid
from typing import AsyncGenerator, Dict

# Settings are read at import time
os.environ.setdefault("PETPAL_CHAT_SERVICE_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("PETPAL_CHAT_SERVICE_ENVIRONMENT", "testing")

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from petpal_chat_service.db import Base, get_db
from petpal_chat_service.main import app as fastapi_app
from petpal_chat_service.models import AdoptionRequest, AdoptionStatus, Pet
from petpal_chat_service.realtime import RoomRouter

# Routes are served without the proxy prefix in tests
fastapi_app.root_path = ""


class FakeConnection:
    """Records frames sent to it; optionally fails every send."""

    def __init__(self, connection_id: str = None, fail: bool = False):
        self.id = connection_id or uuid.uuid4().hex
        self.fail = fail
        self.frames = []

    async def send_json(self, data):
        if self.fail:
            raise ConnectionResetError("socket closed")
        self.frames.append(data)

    def of_type(self, event_type: str):
        return [f["data"] for f in self.frames if f["type"] == event_type]


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'chat.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def room_router() -> RoomRouter:
    return RoomRouter()


@pytest.fixture
def app(session_factory, room_router):
    async def override_get_db():
        async with session_factory() as session:
            yield session
            await session.commit()

    fastapi_app.dependency_overrides[get_db] = override_get_db
    previous_router = fastapi_app.state.room_router
    fastapi_app.state.room_router = room_router
    yield fastapi_app
    fastapi_app.state.room_router = previous_router
    fastapi_app.dependency_overrides = {}


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def ws_client(room_router):
    """Synchronous client for the live channel; it never touches the database."""
    previous_router = fastapi_app.state.room_router
    fastapi_app.state.room_router = room_router
    with TestClient(fastapi_app) as client:
        yield client
    fastapi_app.state.room_router = previous_router


async def create_adoption(
    session: AsyncSession,
    *,
    pet_name: str = "Bella",
    owner_name: str = "Olivia Owner",
    owner_email: str = "owner@example.com",
    requester_name: str = "Rachel Requester",
    requester_email: str = "requester@example.com",
    status: AdoptionStatus = AdoptionStatus.APPROVED,
) -> AdoptionRequest:
    pet = Pet(id=uuid.uuid4(), name=pet_name, owner_full_name=owner_name, owner_email=owner_email)
    session.add(pet)
    adoption = AdoptionRequest(
        id=uuid.uuid4(),
        pet_id=pet.id,
        full_name=requester_name,
        email=requester_email,
        status=status.value,
    )
    session.add(adoption)
    await session.commit()
    return adoption


@pytest_asyncio.fixture
async def approved_adoption(db_session) -> AdoptionRequest:
    return await create_adoption(db_session)


@pytest.fixture
def participants() -> Dict[str, Dict[str, str]]:
    return {
        "requester": {"email": "requester@example.com", "name": "Rachel Requester"},
        "owner": {"email": "owner@example.com", "name": "Olivia Owner"},
        "stranger": {"email": "stranger@example.com", "name": "Sam Stranger"},
    }


@pytest.fixture
def adoption_factory(session_factory):
    """Seed a pet and adoption request in their own committed session."""

    async def factory(**kwargs) -> AdoptionRequest:
        async with session_factory() as session:
            return await create_adoption(session, **kwargs)

    return factory


@pytest.fixture
def make_connection():
    return FakeConnection
