from fastapi import Depends

from chitchat.repositories.ai_chat_limit_repository import AIChatLimitRepository
from chitchat.repositories.conversation_repository import ConversationRepository
from chitchat.repositories.dependencies import (
    get_ai_chat_limit_repository,
    get_conversation_repository,
    get_message_repository,
    get_profile_repository,
)
from chitchat.repositories.message_repository import MessageRepository
from chitchat.repositories.profile_repository import ProfileRepository

from .assistant_service import AssistantService
from .conversation_service import ConversationService
from .profile_service import ProfileService


def get_conversation_service(
    conv_repo: ConversationRepository = Depends(get_conversation_repository),
    msg_repo: MessageRepository = Depends(get_message_repository),
    profile_repo: ProfileRepository = Depends(get_profile_repository),
) -> ConversationService:
    """Provides an instance of the ConversationService with its dependencies."""
    return ConversationService(
        conversation_repository=conv_repo,
        message_repository=msg_repo,
        profile_repository=profile_repo,
    )


def get_profile_service(
    profile_repo: ProfileRepository = Depends(get_profile_repository),
) -> ProfileService:
    """Provides an instance of the ProfileService."""
    return ProfileService(profile_repository=profile_repo)


def get_assistant_service(
    limit_repo: AIChatLimitRepository = Depends(get_ai_chat_limit_repository),
) -> AssistantService:
    """Provides an instance of the AssistantService."""
    return AssistantService(limit_repository=limit_repo)
