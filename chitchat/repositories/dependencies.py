from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from chitchat.db import get_db_session

from .ai_chat_limit_repository import AIChatLimitRepository
from .conversation_repository import ConversationRepository
from .message_repository import MessageRepository
from .profile_repository import ProfileRepository


def get_conversation_repository(
    session: AsyncSession = Depends(get_db_session),
) -> ConversationRepository:
    return ConversationRepository(session)


def get_profile_repository(
    session: AsyncSession = Depends(get_db_session),
) -> ProfileRepository:
    """Dependency provider for ProfileRepository."""
    return ProfileRepository(session)


def get_message_repository(
    session: AsyncSession = Depends(get_db_session),
) -> MessageRepository:
    """Dependency provider for MessageRepository."""
    return MessageRepository(session)


def get_ai_chat_limit_repository(
    session: AsyncSession = Depends(get_db_session),
) -> AIChatLimitRepository:
    return AIChatLimitRepository(session)
