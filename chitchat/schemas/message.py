import enum
import uuid
from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

IMAGE_PREVIEW_TEXT = "Image"


class MessageType(str, enum.Enum):
    TEXT = "text"
    IMAGE = "image"


class TextBody(BaseModel):
    type: Literal["text"] = "text"
    content: str = Field(min_length=1)

    @field_validator("content")
    @classmethod
    def strip_content(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Message content cannot be blank")
        return value

    @property
    def preview(self) -> str:
        return self.content


class ImageBody(BaseModel):
    type: Literal["image"] = "image"
    image_url: str = Field(min_length=1)

    @property
    def preview(self) -> str:
        return IMAGE_PREVIEW_TEXT


MessageBody = Annotated[Union[TextBody, ImageBody], Field(discriminator="type")]


class MessageCreate(BaseModel):
    body: MessageBody


class MessageRead(BaseModel):
    id: uuid.UUID
    conversation_id: uuid.UUID
    sender_id: uuid.UUID
    body: MessageBody
    created_at: datetime
    is_read: bool

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_model(cls, message) -> "MessageRead":
        """Folds the nullable content/image_url columns into the tagged body."""
        if message.message_type == MessageType.IMAGE:
            body = ImageBody(image_url=message.image_url)
        else:
            body = TextBody(content=message.content)
        return cls(
            id=message.id,
            conversation_id=message.conversation_id,
            sender_id=message.sender_id,
            body=body,
            created_at=message.created_at,
            is_read=message.is_read,
        )


class MarkReadResponse(BaseModel):
    updated: int
