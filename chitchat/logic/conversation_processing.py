import logging
from uuid import UUID

# Logic related to processing conversation actions, decoupled from API routes.
# This helps in testing the core business logic independently.
from chitchat.models import User
from chitchat.schemas.conversation import (
    ConversationDetail,
    ConversationStartRequest,
    ConversationStartResponse,
    ConversationSummary,
)
from chitchat.schemas.message import MessageCreate, MessageRead
from chitchat.services.conversation_service import ConversationService
from chitchat.services.exceptions import ServiceError

logger = logging.getLogger(__name__)


async def handle_list_my_conversations(
    user: User, conv_service: ConversationService
) -> list[ConversationSummary]:
    return await conv_service.list_user_conversations(user)


async def handle_start_conversation(
    request_data: ConversationStartRequest,
    creator_user: User,
    conv_service: ConversationService,
) -> ConversationStartResponse:
    """
    Resolves the peer handle and joins or creates the conversation.

    Raises:
        ValidationFailedError: The handle does not have the required shape.
        HandleNotFoundError: No profile carries the handle.
        BusinessRuleError: The handle is the caller's own.
        DatabaseError: A store call failed; the message names the step.
    """
    conversation, created = await conv_service.start_conversation(
        creator_user=creator_user,
        peer_handle=request_data.peer_handle,
        label=request_data.label,
    )
    logger.info(
        f"Handler: conversation {conversation.id} "
        f"{'created' if created else 'joined'} by user {creator_user.id}"
    )
    return ConversationStartResponse(conversation_id=conversation.id, created=created)


async def handle_get_conversation(
    conversation_id: UUID,
    requesting_user: User,
    conv_service: ConversationService,
) -> ConversationDetail:
    """Retrieves details for a specific conversation if the user is authorized."""
    logger.debug(
        f"Handler: Getting conversation {conversation_id} for user {requesting_user.id}"
    )
    try:
        return await conv_service.get_conversation_details(
            conversation_id=conversation_id, requesting_user=requesting_user
        )
    except ServiceError as e:
        logger.info(f"Handler: Service error getting conversation {conversation_id}: {e}")
        raise


async def handle_rename_conversation(
    conversation_id: UUID,
    label: str | None,
    user: User,
    conv_service: ConversationService,
) -> ConversationSummary:
    return await conv_service.rename_conversation(conversation_id, user, label)


async def handle_create_message(
    conversation_id: UUID,
    request_data: MessageCreate,
    sender_user: User,
    conv_service: ConversationService,
) -> MessageRead:
    return await conv_service.send_message(
        conversation_id=conversation_id,
        sender_user=sender_user,
        body=request_data.body,
    )


async def handle_mark_read(
    conversation_id: UUID, reader: User, conv_service: ConversationService
) -> int:
    return await conv_service.mark_read(conversation_id, reader)
