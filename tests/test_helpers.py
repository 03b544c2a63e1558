from typing import Any, Optional
from uuid import UUID

from asyncstdlib import anext
from fastapi_users.db import SQLAlchemyUserDatabase
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chitchat.auth_config import get_user_manager
from chitchat.core.validation import generate_handle
from chitchat.models import AIChatLimit, Conversation, Message, User
from chitchat.repositories.profile_repository import ProfileRepository
from chitchat.schemas.user import UserCreate
from chitchat.services.assistant_client import AssistantUpstreamError

ALICE_EMAIL = "alice@gmail.com"
ALICE_HANDLE = "731234567"
BOB_EMAIL = "bob@gmail.com"
BOB_HANDLE = "739876543"
TEST_PASSWORD = "Secret123!"


async def create_test_user(
    session_maker: async_sessionmaker[AsyncSession],
    email: str,
    password: str = TEST_PASSWORD,
    handle: Optional[str] = None,
    display_name: Optional[str] = None,
    is_verified: bool = False,
) -> User:
    """Creates a user through the user manager, plus a profile with the given handle."""
    async with session_maker() as session:
        user_manager_gen = get_user_manager(SQLAlchemyUserDatabase(session, User))
        user_manager = await anext(user_manager_gen)
        try:
            user = await user_manager.create(
                UserCreate(email=email, password=password, is_verified=is_verified)
            )
            profile_repo = ProfileRepository(session)
            profile = await profile_repo.create_profile(
                user.id, handle or generate_handle()
            )
            if display_name:
                profile.display_name = display_name
            await session.commit()
            await session.refresh(user)
            return user
        finally:
            await user_manager_gen.aclose()


async def login(client: AsyncClient, email: str, password: str = TEST_PASSWORD) -> str:
    """Signs in and returns the auth cookie value."""
    res = await client.post(
        "/auth/jwt/login", data={"username": email, "password": password}
    )
    assert res.status_code == 204, res.text
    cookie = res.headers["Set-Cookie"]
    return cookie.split(";")[0].split("=", 1)[1]


async def create_conversation(
    session_maker: async_sessionmaker[AsyncSession],
    participant1: User,
    participant2: User,
    participant1_name: Optional[str] = None,
    participant2_name: Optional[str] = None,
    last_message: Optional[str] = None,
) -> Conversation:
    async with session_maker() as session:
        conversation = Conversation(
            participant1_id=participant1.id,
            participant2_id=participant2.id,
            participant1_name=participant1_name,
            participant2_name=participant2_name,
            last_message=last_message,
        )
        session.add(conversation)
        await session.commit()
        await session.refresh(conversation)
        return conversation


async def get_conversation(
    session_maker: async_sessionmaker[AsyncSession], conversation_id
) -> Optional[Conversation]:
    async with session_maker() as session:
        return await session.get(Conversation, UUID(str(conversation_id)))


async def count_rows(session_maker: async_sessionmaker[AsyncSession], model) -> int:
    async with session_maker() as session:
        return len((await session.execute(select(model))).scalars().all())


async def get_messages(
    session_maker: async_sessionmaker[AsyncSession], conversation_id
) -> list[Message]:
    async with session_maker() as session:
        result = await session.execute(
            select(Message)
            .where(Message.conversation_id == UUID(str(conversation_id)))
            .order_by(Message.created_at)
        )
        return list(result.scalars().all())


async def get_limit(
    session_maker: async_sessionmaker[AsyncSession], user: User
) -> Optional[AIChatLimit]:
    async with session_maker() as session:
        result = await session.execute(
            select(AIChatLimit).where(AIChatLimit.user_id == user.id)
        )
        return result.scalars().first()


class FakeAssistant:
    """Stands in for assistant_client.ask_assistant."""

    def __init__(self, answer: str = "Here is your answer"):
        self.answer = answer
        self.fail = False
        self.questions: list[str] = []

    async def __call__(self, text: str, **kwargs: Any) -> str:
        self.questions.append(text)
        if self.fail:
            raise AssistantUpstreamError("upstream down")
        return self.answer
