from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer
from sqlalchemy.types import Uuid

from .base import BaseModel


class AIChatLimit(BaseModel):
    __tablename__ = "ai_chat_limits"

    user_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id"), unique=True, nullable=False
    )
    questions_count = Column(Integer, nullable=False, default=0)
    last_reset_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint("questions_count >= 0", name="ck_ai_chat_limits_count"),
    )
