from typing import AsyncGenerator, Awaitable, Callable

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from test_helpers import ALICE_EMAIL, BOB_EMAIL, TEST_PASSWORD

from chitchat.client.api import ChitChatClient
from chitchat.client.context import AppContext
from chitchat.models import User


@pytest.fixture
async def make_api(
    test_app: FastAPI,
) -> AsyncGenerator[Callable[[], Awaitable[ChitChatClient]], None]:
    """Builds ChitChatClients talking to the app in-process."""
    transports = []

    async def _make() -> ChitChatClient:
        http = AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test")
        transports.append(http)
        return ChitChatClient(http)

    yield _make
    for http in transports:
        await http.aclose()


@pytest.fixture
async def alice_api(make_api, logged_in_user: User) -> ChitChatClient:
    api = await make_api()
    await api.sign_in(ALICE_EMAIL, TEST_PASSWORD)
    return api


@pytest.fixture
async def bob_api(make_api, other_user: User) -> ChitChatClient:
    api = await make_api()
    await api.sign_in(BOB_EMAIL, TEST_PASSWORD)
    return api


@pytest.fixture
async def alice_context(alice_api: ChitChatClient) -> AppContext:
    context = AppContext(alice_api)
    await context.initialize()
    return context


@pytest.fixture
async def bob_context(bob_api: ChitChatClient) -> AppContext:
    context = AppContext(bob_api)
    await context.initialize()
    return context
