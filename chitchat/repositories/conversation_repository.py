from datetime import datetime, timezone
from typing import Sequence
from uuid import UUID

from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from chitchat.models import Conversation

from .base import BaseRepository


class ConversationRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session)

    async def get_conversation_by_id(
        self, conversation_id: UUID
    ) -> Conversation | None:
        """Retrieves a specific conversation by its ID."""
        stmt = select(Conversation).filter(Conversation.id == conversation_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def find_between(self, user_a: UUID, user_b: UUID) -> Conversation | None:
        """Finds the conversation of an unordered pair, in either slot order."""
        stmt = (
            select(Conversation)
            .filter(
                or_(
                    and_(
                        Conversation.participant1_id == user_a,
                        Conversation.participant2_id == user_b,
                    ),
                    and_(
                        Conversation.participant1_id == user_b,
                        Conversation.participant2_id == user_a,
                    ),
                )
            )
            .order_by(Conversation.created_at.asc())
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_user_conversations(self, user_id: UUID) -> Sequence[Conversation]:
        """Lists conversations where the user holds either slot, newest activity first."""
        stmt = (
            select(Conversation)
            .filter(
                or_(
                    Conversation.participant1_id == user_id,
                    Conversation.participant2_id == user_id,
                )
            )
            .order_by(Conversation.updated_at.desc())
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def create_conversation(
        self,
        participant1_id: UUID,
        participant2_id: UUID,
        participant1_name: str | None = None,
    ) -> Conversation:
        now = datetime.now(timezone.utc)
        new_conversation = Conversation(
            participant1_id=participant1_id,
            participant2_id=participant2_id,
            participant1_name=participant1_name,
            participant2_name=None,
            created_at=now,
            updated_at=now,
        )
        self.session.add(new_conversation)
        await self.session.flush()
        return new_conversation

    async def set_label(
        self, conversation: Conversation, slot: int, label: str | None
    ) -> Conversation:
        """Writes the private label of one participant slot only."""
        field = "participant1_name" if slot == 1 else "participant2_name"
        setattr(conversation, field, label)
        conversation.updated_at = datetime.now(timezone.utc)
        self.session.add(conversation)
        await self.session.flush()
        await self.session.refresh(conversation)
        return conversation

    async def update_preview(
        self, conversation_id: UUID, preview: str, activity_time: datetime
    ) -> None:
        """Updates the denormalized last-message fields and the ordering timestamp."""
        stmt = (
            update(Conversation)
            .where(Conversation.id == conversation_id)
            .values(
                last_message=preview,
                last_message_at=activity_time,
                updated_at=activity_time,
            )
        )
        await self.session.execute(stmt)
