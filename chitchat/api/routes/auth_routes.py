import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi_users import models
from fastapi_users.manager import BaseUserManager
from fastapi_users.router.common import ErrorCode, ErrorModel

from chitchat.api.common import BaseRouter
from chitchat.auth_config import get_user_manager, optional_current_user
from chitchat.logic.auth_processing import handle_get_session, handle_registration
from chitchat.models import User
from chitchat.schemas.user import SessionRead, UserCreate, UserRead
from chitchat.services.dependencies import get_profile_service
from chitchat.services.profile_service import ProfileService

logger = logging.getLogger(__name__)
auth_api_router = APIRouter()
router = BaseRouter(router=auth_api_router, default_tags=["auth"])

register_responses = {
    status.HTTP_400_BAD_REQUEST: {
        "model": ErrorModel,
        "content": {
            "application/json": {
                "examples": {
                    ErrorCode.REGISTER_USER_ALREADY_EXISTS: {
                        "summary": "A user with this email already exists.",
                        "value": {"detail": ErrorCode.REGISTER_USER_ALREADY_EXISTS},
                    },
                    ErrorCode.REGISTER_INVALID_PASSWORD: {
                        "summary": "Password validation failed.",
                        "value": {
                            "detail": {
                                "code": ErrorCode.REGISTER_INVALID_PASSWORD,
                                "reason": "Password must contain at least one digit.",
                                "field": "password",
                            }
                        },
                    },
                }
            }
        },
    },
}


@router.post(
    "/register",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    name="auth:register",
    responses=register_responses,
)
async def register_request_handler(
    request_data: UserCreate,
    request: Request,
    user_manager: BaseUserManager[models.UP, models.ID] = Depends(get_user_manager),
    profile_service: ProfileService = Depends(get_profile_service),
):
    """Creates an account and assigns it a unique handle."""
    return await handle_registration(
        request_data=request_data,
        request=request,
        user_manager=user_manager,
        profile_service=profile_service,
    )


@router.get("/session", response_model=SessionRead | None, name="auth:session")
async def get_session(
    user: User | None = Depends(optional_current_user),
    profile_service: ProfileService = Depends(get_profile_service),
):
    """The signed-in user and their profile, or null for anonymous callers."""
    return await handle_get_session(user=user, profile_service=profile_service)
