import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from test_helpers import BOB_HANDLE, create_conversation, create_test_user

from chitchat.models import User

pytestmark = pytest.mark.asyncio


async def test_list_is_empty_for_new_user(authenticated_client: AsyncClient):
    response = await authenticated_client.get("/users/me/conversations")
    assert response.status_code == 200
    assert response.json() == []


async def test_list_shows_conversations_from_both_slots_newest_first(
    authenticated_client: AsyncClient,
    other_client: AsyncClient,
    db_test_session_manager: async_sessionmaker[AsyncSession],
    logged_in_user: User,
):
    carol = await create_test_user(
        db_test_session_manager,
        email="carol@gmail.com",
        handle="735555555",
        display_name="Carol",
    )
    # Alice holds slot 1 here
    with_bob = (
        await authenticated_client.post(
            "/conversations", json={"peer_handle": BOB_HANDLE}
        )
    ).json()["conversation_id"]
    # and slot 2 here
    with_carol = await create_conversation(
        db_test_session_manager, carol, logged_in_user
    )

    await authenticated_client.post(
        f"/conversations/{with_bob}/messages",
        json={"body": {"type": "text", "content": "newest"}},
    )

    response = await authenticated_client.get("/users/me/conversations")
    assert response.status_code == 200
    data = response.json()
    assert [c["id"] for c in data] == [with_bob, str(with_carol.id)]
    assert data[0]["last_message"] == "newest"
    assert data[0]["display_name"] == BOB_HANDLE
    assert data[0]["peer"]["unique_number"] == BOB_HANDLE
    assert data[1]["display_name"] == "Carol"
    assert data[1]["last_message"] is None


async def test_list_excludes_other_peoples_conversations(
    authenticated_client: AsyncClient,
    db_test_session_manager: async_sessionmaker[AsyncSession],
    other_user: User,
):
    dave = await create_test_user(
        db_test_session_manager, email="dave@gmail.com", handle="736666666"
    )
    await create_conversation(db_test_session_manager, other_user, dave)

    response = await authenticated_client.get("/users/me/conversations")
    assert response.json() == []


async def test_own_label_wins_over_peer_profile(
    authenticated_client: AsyncClient,
    db_test_session_manager: async_sessionmaker[AsyncSession],
    logged_in_user: User,
    other_user: User,
):
    await create_conversation(
        db_test_session_manager,
        other_user,
        logged_in_user,
        participant1_name="Label Bob gave",
        participant2_name="My name for Bob",
    )
    data = (await authenticated_client.get("/users/me/conversations")).json()
    assert data[0]["my_label"] == "My name for Bob"
    assert data[0]["display_name"] == "My name for Bob"


async def test_rename_unknown_conversation(authenticated_client: AsyncClient):
    response = await authenticated_client.patch(
        f"/conversations/{uuid.uuid4()}/label", json={"label": "x"}
    )
    assert response.status_code == 404
