import logging

from fastapi import APIRouter, Depends

from chitchat.api.common import BaseRouter
from chitchat.auth_config import current_active_user
from chitchat.logic.conversation_processing import handle_list_my_conversations
from chitchat.logic.profile_processing import (
    handle_get_my_profile,
    handle_update_my_profile,
)
from chitchat.models import User
from chitchat.schemas.conversation import ConversationSummary
from chitchat.schemas.profile import ProfileRead, ProfileUpdate
from chitchat.services.conversation_service import ConversationService
from chitchat.services.dependencies import (
    get_conversation_service,
    get_profile_service,
)
from chitchat.services.profile_service import ProfileService

logger = logging.getLogger(__name__)
me_router_instance = APIRouter(prefix="/users/me")
router = BaseRouter(router=me_router_instance, default_tags=["me"])


@router.get("/profile", response_model=ProfileRead)
async def get_my_profile(
    user: User = Depends(current_active_user),
    profile_service: ProfileService = Depends(get_profile_service),
):
    """The current user's profile, including their shareable handle."""
    return await handle_get_my_profile(user=user, profile_service=profile_service)


@router.patch("/profile", response_model=ProfileRead)
async def update_my_profile(
    update: ProfileUpdate,
    user: User = Depends(current_active_user),
    profile_service: ProfileService = Depends(get_profile_service),
):
    return await handle_update_my_profile(
        user=user, update=update, profile_service=profile_service
    )


@router.get("/conversations", response_model=list[ConversationSummary])
async def list_my_conversations(
    user: User = Depends(current_active_user),
    conv_service: ConversationService = Depends(get_conversation_service),
):
    """Conversations the current user is part of, most recently active first."""
    return await handle_list_my_conversations(user=user, conv_service=conv_service)
