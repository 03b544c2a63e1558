import logging

from chitchat.models import User
from chitchat.schemas.profile import ProfileRead, ProfileUpdate
from chitchat.services.profile_service import ProfileService

logger = logging.getLogger(__name__)


async def handle_get_my_profile(
    user: User, profile_service: ProfileService
) -> ProfileRead:
    profile = await profile_service.get_profile(user)
    return ProfileRead.model_validate(profile)


async def handle_update_my_profile(
    user: User, update: ProfileUpdate, profile_service: ProfileService
) -> ProfileRead:
    logger.debug(f"Handler: updating profile of user {user.id}")
    profile = await profile_service.update_profile(user, update)
    return ProfileRead.model_validate(profile)
