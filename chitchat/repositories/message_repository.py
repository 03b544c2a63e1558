import uuid
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from chitchat.models import Message
from chitchat.schemas.message import ImageBody, MessageType, TextBody

from .base import BaseRepository


class MessageRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session)

    async def create_message(
        self,
        conversation_id: uuid.UUID,
        sender_id: uuid.UUID,
        body: TextBody | ImageBody,
    ) -> Message:
        """Creates and adds a new message to the session."""
        if isinstance(body, ImageBody):
            fields = {"message_type": MessageType.IMAGE, "image_url": body.image_url}
        else:
            fields = {"message_type": MessageType.TEXT, "content": body.content}
        new_message = Message(
            id=uuid.uuid4(),
            conversation_id=conversation_id,
            sender_id=sender_id,
            created_at=datetime.now(timezone.utc),
            is_read=False,
            **fields,
        )
        self.session.add(new_message)
        await self.session.flush()
        return new_message

    async def get_messages_by_conversation(
        self, conversation_id: uuid.UUID
    ) -> list[Message]:
        """Retrieves all messages for a given conversation, ordered by creation time."""
        stmt = (
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def mark_messages_read(
        self, conversation_id: uuid.UUID, reader_id: uuid.UUID
    ) -> int:
        """Flags every unread message not sent by the reader as read."""
        stmt = (
            update(Message)
            .where(
                Message.conversation_id == conversation_id,
                Message.sender_id != reader_id,
                Message.is_read == False,  # noqa: E712
            )
            .values(is_read=True)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0
