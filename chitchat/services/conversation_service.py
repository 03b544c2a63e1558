import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from chitchat.core.config import settings
from chitchat.core.validation import is_valid_handle
from chitchat.models import Conversation, User
from chitchat.repositories.conversation_repository import ConversationRepository
from chitchat.repositories.message_repository import MessageRepository
from chitchat.repositories.profile_repository import ProfileRepository
from chitchat.schemas.conversation import ConversationDetail, ConversationSummary
from chitchat.schemas.message import ImageBody, MessageRead, TextBody
from chitchat.schemas.profile import PublicProfile

from .exceptions import (
    BusinessRuleError,
    ConversationNotFoundError,
    DatabaseError,
    HandleNotFoundError,
    NotAuthorizedError,
    ServiceError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)


class ConversationService:
    def __init__(
        self,
        conversation_repository: ConversationRepository,
        message_repository: MessageRepository,
        profile_repository: ProfileRepository,
    ):
        self.conv_repo = conversation_repository
        self.msg_repo = message_repository
        self.profile_repo = profile_repository
        # The session is implicitly shared via the repositories
        self.session = conversation_repository.session

    async def _get_participant_conversation(
        self, conversation_id: UUID, user: User
    ) -> Conversation:
        conversation = await self.conv_repo.get_conversation_by_id(conversation_id)
        if not conversation:
            raise ConversationNotFoundError(
                f"Conversation with id '{conversation_id}' not found."
            )
        if conversation.slot_of(user.id) is None:
            raise NotAuthorizedError("User is not a participant in this conversation.")
        return conversation

    async def _peer_profiles(
        self, conversations: list[Conversation], user: User
    ) -> dict[UUID, PublicProfile]:
        peer_ids = list({c.peer_id_of(user.id) for c in conversations})
        profiles = await self.profile_repo.get_profiles_by_user_ids(peer_ids)
        return {
            user_id: PublicProfile.model_validate(profile)
            for user_id, profile in profiles.items()
        }

    async def list_user_conversations(self, user: User) -> list[ConversationSummary]:
        """Every conversation the user takes part in, most recently active first."""
        try:
            conversations = list(await self.conv_repo.list_user_conversations(user.id))
            peers = await self._peer_profiles(conversations, user)
        except SQLAlchemyError as e:
            logger.error(
                f"Database error fetching conversations for user {user.id}: {e}",
                exc_info=True,
            )
            raise DatabaseError(
                "Failed to fetch user conversations due to a database error."
            )
        return [
            ConversationSummary.for_viewer(c, user.id, peers.get(c.peer_id_of(user.id)))
            for c in conversations
        ]

    async def get_conversation_details(
        self, conversation_id: UUID, requesting_user: User
    ) -> ConversationDetail:
        """
        Fetches the conversation with the peer's public profile and the full
        message history in chronological order, performing authorization checks.
        """
        conversation = await self._get_participant_conversation(
            conversation_id, requesting_user
        )
        try:
            peers = await self._peer_profiles([conversation], requesting_user)
            messages = await self.msg_repo.get_messages_by_conversation(conversation.id)
        except SQLAlchemyError as e:
            logger.error(
                f"Database error loading conversation {conversation_id}: {e}",
                exc_info=True,
            )
            raise DatabaseError("Failed to load conversation due to a database error.")

        return ConversationDetail(
            conversation=ConversationSummary.for_viewer(
                conversation,
                requesting_user.id,
                peers.get(conversation.peer_id_of(requesting_user.id)),
            ),
            messages=[MessageRead.from_model(m) for m in messages],
        )

    async def rename_conversation(
        self, conversation_id: UUID, user: User, label: str | None
    ) -> ConversationSummary:
        """Sets the caller's private label; the peer's label is never touched."""
        conversation = await self._get_participant_conversation(conversation_id, user)
        label = label.strip() if label else None
        try:
            conversation = await self.conv_repo.set_label(
                conversation, conversation.slot_of(user.id), label or None
            )
            await self.session.commit()
            peers = await self._peer_profiles([conversation], user)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Database error renaming conversation: {e}", exc_info=True)
            raise DatabaseError("Failed to save the conversation name.")

        return ConversationSummary.for_viewer(
            conversation, user.id, peers.get(conversation.peer_id_of(user.id))
        )

    async def start_conversation(
        self, creator_user: User, peer_handle: str, label: str | None = None
    ) -> tuple[Conversation, bool]:
        """
        Resolves a peer by handle and returns the conversation between the two
        users, creating it when none exists. The boolean tells whether it was
        created. The existence check and the insert are not atomic.
        """
        peer_handle = (peer_handle or "").strip()
        if not is_valid_handle(peer_handle, settings.HANDLE_PREFIX):
            raise ValidationFailedError(
                f"Handle must be 9 digits starting with {settings.HANDLE_PREFIX}.",
                field="peer_handle",
            )

        try:
            peer_profile = await self.profile_repo.get_profile_by_unique_number(
                peer_handle
            )
        except SQLAlchemyError as e:
            logger.error(f"Database error looking up handle: {e}", exc_info=True)
            raise DatabaseError("An error occurred while looking up the user.")
        if not peer_profile:
            raise HandleNotFoundError(f"No user has the handle '{peer_handle}'.")
        if peer_profile.user_id == creator_user.id:
            raise BusinessRuleError("You cannot message yourself.", field="peer_handle")

        try:
            existing = await self.conv_repo.find_between(
                creator_user.id, peer_profile.user_id
            )
        except SQLAlchemyError as e:
            logger.error(f"Database error checking conversation: {e}", exc_info=True)
            raise DatabaseError("An error occurred while checking the conversation.")
        if existing:
            logger.info(
                f"Joining existing conversation {existing.id} for user {creator_user.id}"
            )
            return existing, False

        label = label.strip() if label else None
        try:
            new_conversation = await self.conv_repo.create_conversation(
                participant1_id=creator_user.id,
                participant2_id=peer_profile.user_id,
                participant1_name=label or None,
            )
            await self.session.commit()
            await self.session.refresh(new_conversation)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Database error creating conversation: {e}", exc_info=True)
            raise DatabaseError("Failed to create the conversation.")

        return new_conversation, True

    async def send_message(
        self, conversation_id: UUID, sender_user: User, body: TextBody | ImageBody
    ) -> MessageRead:
        """
        Inserts the message, then refreshes the conversation preview. The two
        steps commit separately: a failed preview update is logged and the
        durable message is still returned.
        """
        conversation = await self._get_participant_conversation(
            conversation_id, sender_user
        )

        try:
            message = await self.msg_repo.create_message(
                conversation_id=conversation.id,
                sender_id=sender_user.id,
                body=body,
            )
            await self.session.commit()
            await self.session.refresh(message)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Database error sending message: {e}", exc_info=True)
            raise DatabaseError("Failed to send the message.")

        # A rollback expires every loaded object, so read them before step two
        result = MessageRead.from_model(message)
        conversation_id = conversation.id

        try:
            await self.conv_repo.update_preview(
                conversation_id,
                preview=body.preview,
                activity_time=datetime.now(timezone.utc),
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.warning(
                f"Message {result.id} stored but preview update failed for "
                f"conversation {conversation_id}: {e}"
            )

        return result

    async def mark_read(self, conversation_id: UUID, reader: User) -> int:
        conversation = await self._get_participant_conversation(conversation_id, reader)
        try:
            updated = await self.msg_repo.mark_messages_read(conversation.id, reader.id)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Database error marking messages read: {e}", exc_info=True)
            raise DatabaseError("Failed to update read state.")
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Unexpected error marking messages read: {e}", exc_info=True)
            raise ServiceError("An unexpected error occurred while updating read state.")
        return updated
