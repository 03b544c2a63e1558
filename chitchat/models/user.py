import uuid

from fastapi_users.db import SQLAlchemyBaseUserTable
from sqlalchemy.orm import relationship

from .base import BaseModel


# User model inherits from BaseModel and SQLAlchemyBaseUserTable
# Note: SQLAlchemyBaseUserTable requires a specific type for the ID. Uuid works.
class User(SQLAlchemyBaseUserTable[uuid.UUID], BaseModel):
    __tablename__ = "users"

    # id, created_at, updated_at are inherited from BaseModel
    # email, hashed_password, is_active, is_superuser, is_verified are from SQLAlchemyBaseUserTable

    profile = relationship(
        "Profile",
        back_populates="user",
        uselist=False,
        foreign_keys="Profile.user_id",
    )
