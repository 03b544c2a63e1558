import logging

from fastapi import APIRouter, Depends

from chitchat.api.common import BaseRouter
from chitchat.auth_config import current_active_user
from chitchat.logic.assistant_processing import handle_ask_question, handle_get_quota
from chitchat.models import User
from chitchat.schemas.assistant import AnswerRead, QuestionCreate, QuotaRead
from chitchat.services.assistant_service import AssistantService
from chitchat.services.dependencies import get_assistant_service

logger = logging.getLogger(__name__)
assistant_router_instance = APIRouter(prefix="/assistant")
router = BaseRouter(router=assistant_router_instance, default_tags=["assistant"])


@router.get("/quota", response_model=QuotaRead)
async def get_quota(
    user: User = Depends(current_active_user),
    assistant_service: AssistantService = Depends(get_assistant_service),
):
    """Opens or resets the user's question window and reports what is left."""
    return await handle_get_quota(user=user, assistant_service=assistant_service)


@router.post("/questions", response_model=AnswerRead)
async def ask_question(
    request_data: QuestionCreate,
    user: User = Depends(current_active_user),
    assistant_service: AssistantService = Depends(get_assistant_service),
):
    return await handle_ask_question(
        user=user, text=request_data.text, assistant_service=assistant_service
    )
