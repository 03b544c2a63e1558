from sqlalchemy import Column, ForeignKey, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.types import Uuid

from .base import BaseModel


class Profile(BaseModel):
    __tablename__ = "profiles"

    # id, created_at, updated_at are inherited from BaseModel
    user_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id"), unique=True, nullable=False
    )
    unique_number = Column(String(9), unique=True, nullable=False, index=True)
    display_name = Column(Text, nullable=True)
    avatar_url = Column(Text, nullable=True)

    user = relationship("User", back_populates="profile", foreign_keys=[user_id])
