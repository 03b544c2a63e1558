from sqlalchemy import Boolean, Column, ForeignKey, Text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import expression
from sqlalchemy.types import Uuid

from chitchat.schemas.message import MessageType  # Import the Python Enum

from .base import BaseModel


class Message(BaseModel):
    __tablename__ = "messages"

    # id, created_at are inherited from BaseModel
    # messages are never deleted; only is_read changes after insert
    conversation_id = Column(
        Uuid(as_uuid=True), ForeignKey("conversations.id"), nullable=False, index=True
    )
    sender_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=True)
    message_type = Column(
        SQLAlchemyEnum(MessageType), nullable=False, default=MessageType.TEXT
    )
    image_url = Column(Text, nullable=True)
    is_read = Column(Boolean, nullable=False, server_default=expression.false())

    # Relationships
    conversation = relationship("Conversation", back_populates="messages")
    sender = relationship("User", foreign_keys=[sender_id])
