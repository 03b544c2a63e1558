# chitchat/logic/auth_processing.py
import logging

from fastapi import Request
from fastapi_users import models
from fastapi_users.manager import BaseUserManager

from chitchat.core.config import settings
from chitchat.core.validation import email_domain_allowed
from chitchat.models import User
from chitchat.schemas.profile import ProfileRead
from chitchat.schemas.user import SessionRead, UserCreate, UserRead
from chitchat.services.exceptions import ValidationFailedError
from chitchat.services.profile_service import ProfileService

logger = logging.getLogger(__name__)


async def handle_registration(
    request_data: UserCreate,
    request: Request,
    user_manager: BaseUserManager[models.UP, models.ID],
    profile_service: ProfileService,
) -> UserRead:
    """Creates the account, then its profile with a unique handle."""
    if not email_domain_allowed(request_data.email, settings.ALLOWED_EMAIL_DOMAINS):
        allowed = ", ".join(f"@{d}" for d in settings.ALLOWED_EMAIL_DOMAINS)
        raise ValidationFailedError(
            f"Email address must end with one of: {allowed}", field="email"
        )
    created_user = await user_manager.create(request_data, safe=True, request=request)
    await profile_service.create_profile_for_user(created_user)
    return created_user


async def handle_get_session(
    user: User | None, profile_service: ProfileService
) -> SessionRead | None:
    """Session of the caller, or None when the request carries no valid session."""
    if user is None:
        return None
    user_read = UserRead.model_validate(user, from_attributes=True)
    profile = await profile_service.get_profile(user)
    return SessionRead(user=user_read, profile=ProfileRead.model_validate(profile))
