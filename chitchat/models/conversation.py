from sqlalchemy import Column, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.types import Uuid

from .base import BaseModel


class Conversation(BaseModel):
    __tablename__ = "conversations"

    # id, created_at, updated_at are inherited from BaseModel
    participant1_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )
    participant2_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )
    # Private labels, each one visible only to the participant in that slot
    participant1_name = Column(Text, nullable=True)
    participant2_name = Column(Text, nullable=True)

    last_message = Column(Text, nullable=True)
    last_message_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    participant1 = relationship("User", foreign_keys=[participant1_id])
    participant2 = relationship("User", foreign_keys=[participant2_id])
    messages = relationship(
        "Message",
        back_populates="conversation",
        order_by="Message.created_at",
    )

    def slot_of(self, user_id) -> int | None:
        """Returns 1 or 2 for the participant slot held by user_id, else None."""
        if self.participant1_id == user_id:
            return 1
        if self.participant2_id == user_id:
            return 2
        return None

    def peer_id_of(self, user_id):
        slot = self.slot_of(user_id)
        if slot == 1:
            return self.participant2_id
        if slot == 2:
            return self.participant1_id
        return None

    def label_for(self, user_id) -> str | None:
        slot = self.slot_of(user_id)
        if slot == 1:
            return self.participant1_name
        if slot == 2:
            return self.participant2_name
        return None
