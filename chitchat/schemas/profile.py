import uuid

from pydantic import BaseModel, ConfigDict, Field


class ProfileRead(BaseModel):
    user_id: uuid.UUID
    unique_number: str
    display_name: str | None = None
    avatar_url: str | None = None

    model_config = ConfigDict(from_attributes=True)


class PublicProfile(BaseModel):
    """The part of a profile another user is allowed to see."""

    unique_number: str
    display_name: str | None = None
    avatar_url: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    display_name: str | None = Field(default=None, max_length=100)
    avatar_url: str | None = None
