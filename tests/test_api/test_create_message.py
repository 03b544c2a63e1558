import pytest
from httpx import AsyncClient
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from test_helpers import (
    create_conversation,
    create_test_user,
    get_conversation,
    get_messages,
)

from chitchat.models import User
from chitchat.repositories.conversation_repository import ConversationRepository
from chitchat.repositories.message_repository import MessageRepository
from chitchat.schemas.message import MessageType

pytestmark = pytest.mark.asyncio


@pytest.fixture
async def conversation(
    db_test_session_manager: async_sessionmaker[AsyncSession],
    logged_in_user: User,
    other_user: User,
):
    return await create_conversation(
        db_test_session_manager, logged_in_user, other_user, last_message="before"
    )


async def test_send_text_message_updates_preview(
    authenticated_client: AsyncClient,
    db_test_session_manager: async_sessionmaker[AsyncSession],
    logged_in_user: User,
    conversation,
):
    response = await authenticated_client.post(
        f"/conversations/{conversation.id}/messages",
        json={"body": {"type": "text", "content": "  hello  "}},
    )
    assert response.status_code == 201, response.text
    data = response.json()
    assert data["body"] == {"type": "text", "content": "hello"}
    assert data["sender_id"] == str(logged_in_user.id)
    assert data["is_read"] is False

    stored = await get_conversation(db_test_session_manager, conversation.id)
    assert stored.last_message == "hello"
    assert stored.last_message_at is not None


async def test_send_image_message_previews_as_image(
    authenticated_client: AsyncClient,
    db_test_session_manager: async_sessionmaker[AsyncSession],
    conversation,
):
    response = await authenticated_client.post(
        f"/conversations/{conversation.id}/messages",
        json={"body": {"type": "image", "image_url": "https://img.test/cat.png"}},
    )
    assert response.status_code == 201
    assert response.json()["body"] == {
        "type": "image",
        "image_url": "https://img.test/cat.png",
    }

    messages = await get_messages(db_test_session_manager, conversation.id)
    assert messages[0].message_type == MessageType.IMAGE
    assert messages[0].content is None
    stored = await get_conversation(db_test_session_manager, conversation.id)
    assert stored.last_message == "Image"


@pytest.mark.parametrize(
    "body",
    [
        {"type": "text", "content": "   "},
        {"type": "text"},
        {"type": "video", "url": "x"},
    ],
)
async def test_invalid_bodies_are_rejected(
    authenticated_client: AsyncClient,
    db_test_session_manager: async_sessionmaker[AsyncSession],
    conversation,
    body,
):
    response = await authenticated_client.post(
        f"/conversations/{conversation.id}/messages", json={"body": body}
    )
    assert response.status_code == 422
    assert await get_messages(db_test_session_manager, conversation.id) == []


async def test_failed_insert_leaves_no_message_and_preview_unchanged(
    authenticated_client: AsyncClient,
    db_test_session_manager: async_sessionmaker[AsyncSession],
    conversation,
    monkeypatch,
):
    preview_calls = []

    async def broken_insert(self, **kwargs):
        raise SQLAlchemyError("disk full")

    async def record_preview(self, *args, **kwargs):
        preview_calls.append(args)

    monkeypatch.setattr(MessageRepository, "create_message", broken_insert)
    monkeypatch.setattr(ConversationRepository, "update_preview", record_preview)

    response = await authenticated_client.post(
        f"/conversations/{conversation.id}/messages",
        json={"body": {"type": "text", "content": "lost"}},
    )
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to send the message."
    assert preview_calls == []
    assert await get_messages(db_test_session_manager, conversation.id) == []
    stored = await get_conversation(db_test_session_manager, conversation.id)
    assert stored.last_message == "before"


async def test_failed_preview_update_still_returns_the_message(
    authenticated_client: AsyncClient,
    db_test_session_manager: async_sessionmaker[AsyncSession],
    conversation,
    monkeypatch,
):
    async def broken_preview(self, *args, **kwargs):
        raise SQLAlchemyError("locked")

    monkeypatch.setattr(ConversationRepository, "update_preview", broken_preview)

    response = await authenticated_client.post(
        f"/conversations/{conversation.id}/messages",
        json={"body": {"type": "text", "content": "durable"}},
    )
    assert response.status_code == 201, response.text
    data = response.json()
    assert data["body"] == {"type": "text", "content": "durable"}
    assert data["conversation_id"] == str(conversation.id)
    messages = await get_messages(db_test_session_manager, conversation.id)
    assert [m.content for m in messages] == ["durable"]
    assert data["id"] == str(messages[0].id)
    stored = await get_conversation(db_test_session_manager, conversation.id)
    assert stored.last_message == "before"


async def test_non_participant_cannot_send(
    authenticated_client: AsyncClient,
    db_test_session_manager: async_sessionmaker[AsyncSession],
    other_user: User,
):
    carol = await create_test_user(db_test_session_manager, email="carol@gmail.com")
    conversation = await create_conversation(
        db_test_session_manager, other_user, carol
    )
    response = await authenticated_client.post(
        f"/conversations/{conversation.id}/messages",
        json={"body": {"type": "text", "content": "intruding"}},
    )
    assert response.status_code == 403
    assert await get_messages(db_test_session_manager, conversation.id) == []
