import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from chitchat.api.common import BaseRouter
from chitchat.auth_config import current_active_user
from chitchat.logic.conversation_processing import (
    handle_create_message,
    handle_get_conversation,
    handle_mark_read,
    handle_rename_conversation,
    handle_start_conversation,
)
from chitchat.models import User
from chitchat.schemas.conversation import (
    ConversationDetail,
    ConversationLabelUpdate,
    ConversationStartRequest,
    ConversationStartResponse,
    ConversationSummary,
)
from chitchat.schemas.message import MarkReadResponse, MessageCreate, MessageRead
from chitchat.services.conversation_service import ConversationService
from chitchat.services.dependencies import get_conversation_service

logger = logging.getLogger(__name__)
conversations_router_instance = APIRouter()
router = BaseRouter(router=conversations_router_instance, default_tags=["conversations"])


@router.post(
    "/conversations",
    response_model=ConversationStartResponse,
    status_code=status.HTTP_201_CREATED,
    name="start_conversation",
)
async def start_conversation(
    request_data: ConversationStartRequest,
    response: Response,
    user: User = Depends(current_active_user),
    conv_service: ConversationService = Depends(get_conversation_service),
):
    """Opens the conversation with the owner of a handle; 200 when it already existed."""
    result = await handle_start_conversation(
        request_data=request_data, creator_user=user, conv_service=conv_service
    )
    if not result.created:
        response.status_code = status.HTTP_200_OK
    return result


@router.get(
    "/conversations/{conversation_id}",
    response_model=ConversationDetail,
    name="get_conversation",
)
async def get_conversation(
    conversation_id: UUID,
    user: User = Depends(current_active_user),
    conv_service: ConversationService = Depends(get_conversation_service),
):
    return await handle_get_conversation(
        conversation_id=conversation_id, requesting_user=user, conv_service=conv_service
    )


@router.patch(
    "/conversations/{conversation_id}/label",
    response_model=ConversationSummary,
    name="rename_conversation",
)
async def rename_conversation(
    conversation_id: UUID,
    request_data: ConversationLabelUpdate,
    user: User = Depends(current_active_user),
    conv_service: ConversationService = Depends(get_conversation_service),
):
    """Sets the caller's own name for the conversation."""
    return await handle_rename_conversation(
        conversation_id=conversation_id,
        label=request_data.label,
        user=user,
        conv_service=conv_service,
    )


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=MessageRead,
    status_code=status.HTTP_201_CREATED,
    name="create_message",
    tags=["messages"],
)
async def create_message(
    conversation_id: UUID,
    request_data: MessageCreate,
    user: User = Depends(current_active_user),
    conv_service: ConversationService = Depends(get_conversation_service),
):
    """Handles creating a new message in a conversation."""
    return await handle_create_message(
        conversation_id=conversation_id,
        request_data=request_data,
        sender_user=user,
        conv_service=conv_service,
    )


@router.post(
    "/conversations/{conversation_id}/read",
    response_model=MarkReadResponse,
    name="mark_read",
    tags=["messages"],
)
async def mark_read(
    conversation_id: UUID,
    user: User = Depends(current_active_user),
    conv_service: ConversationService = Depends(get_conversation_service),
):
    updated = await handle_mark_read(
        conversation_id=conversation_id, reader=user, conv_service=conv_service
    )
    return MarkReadResponse(updated=updated)
