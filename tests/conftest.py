import os

# Settings are read at import time; configure them before importing the app
os.environ.setdefault("SECRET", "test-secret")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["COOKIE_SECURE"] = "false"
os.environ["AI_API_KEYS"] = '["test-key"]'

from typing import Any, AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
from fastapi import Depends, FastAPI  # noqa: E402
from fastapi_users.db import SQLAlchemyUserDatabase  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402
from test_helpers import (  # noqa: E402
    ALICE_EMAIL,
    ALICE_HANDLE,
    BOB_EMAIL,
    BOB_HANDLE,
    TEST_PASSWORD,
    FakeAssistant,
    create_test_user,
    login,
)

from chitchat.db import get_db_session, get_user_db  # noqa: E402
from chitchat.main import app  # noqa: E402
from chitchat.models import User, metadata  # noqa: E402
from chitchat.services import assistant_client  # noqa: E402

# Use an in-memory SQLite database shared by every session of a test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
test_async_session_maker = async_sessionmaker(test_engine, expire_on_commit=False)


# Master fixture to manage table creation/dropping and provide session maker
@pytest.fixture(scope="function")
async def db_test_session_manager() -> (
    AsyncGenerator[async_sessionmaker[AsyncSession], None]
):
    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield test_async_session_maker

    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)


async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async with test_async_session_maker() as session:
        yield session


async def override_get_user_db(
    # FastAPI will provide the overridden get_db_session here
    session: AsyncSession = Depends(get_db_session),
) -> SQLAlchemyUserDatabase[User, Any]:
    yield SQLAlchemyUserDatabase(session, User)


@pytest.fixture(scope="function")
def test_app(
    db_test_session_manager: async_sessionmaker[AsyncSession],
) -> FastAPI:
    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_user_db] = override_get_user_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def test_client(test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def fake_assistant(monkeypatch) -> FakeAssistant:
    """Replaces the upstream call; the test decides what it answers."""
    fake = FakeAssistant()
    monkeypatch.setattr(assistant_client, "ask_assistant", fake)
    return fake


@pytest.fixture(scope="function")
async def logged_in_user(
    db_test_session_manager: async_sessionmaker[AsyncSession],
) -> User:
    return await create_test_user(
        db_test_session_manager, email=ALICE_EMAIL, handle=ALICE_HANDLE
    )


@pytest.fixture(scope="function")
async def other_user(
    db_test_session_manager: async_sessionmaker[AsyncSession],
) -> User:
    return await create_test_user(
        db_test_session_manager, email=BOB_EMAIL, handle=BOB_HANDLE
    )


# Fixture to provide an authenticated client for logged_in_user
@pytest.fixture(scope="function")
async def authenticated_client(
    test_client: AsyncClient, logged_in_user: User
) -> AsyncGenerator[AsyncClient, None]:
    token = await login(test_client, logged_in_user.email, TEST_PASSWORD)
    test_client.headers["Cookie"] = f"fastapiusersauth={token}"
    yield test_client
    del test_client.headers["Cookie"]


# A second, independent client signed in as other_user
@pytest.fixture(scope="function")
async def other_client(
    test_app: FastAPI, other_user: User
) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=test_app), base_url="http://test"
    ) as client:
        token = await login(client, other_user.email, TEST_PASSWORD)
        client.headers["Cookie"] = f"fastapiusersauth={token}"
        yield client
