from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .message import MessageRead
from .profile import PublicProfile

PLACEHOLDER_DISPLAY_NAME = "User"
EMPTY_PREVIEW_TEXT = "No messages yet"
PREVIEW_MAX_LENGTH = 30


def resolve_display_name(
    own_label: str | None, peer: PublicProfile | None
) -> str:
    """Own private label, then the peer's display name, then the peer's handle."""
    if own_label:
        return own_label
    if peer is not None:
        if peer.display_name:
            return peer.display_name
        if peer.unique_number:
            return peer.unique_number
    return PLACEHOLDER_DISPLAY_NAME


def preview_text(last_message: str | None) -> str:
    if not last_message:
        return EMPTY_PREVIEW_TEXT
    if len(last_message) > PREVIEW_MAX_LENGTH:
        return last_message[:PREVIEW_MAX_LENGTH] + "..."
    return last_message


# Schema for request body when starting a conversation
class ConversationStartRequest(BaseModel):
    peer_handle: str
    label: str | None = Field(default=None, max_length=100)


class ConversationStartResponse(BaseModel):
    conversation_id: UUID
    created: bool


class ConversationLabelUpdate(BaseModel):
    label: str | None = Field(default=None, max_length=100)


class ConversationSummary(BaseModel):
    id: UUID
    participant1_id: UUID
    participant2_id: UUID
    my_label: str | None = None
    display_name: str
    peer: PublicProfile | None = None
    last_message: str | None = None
    last_message_at: datetime | None = None
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def for_viewer(
        cls, conversation, viewer_id: UUID, peer: PublicProfile | None
    ) -> "ConversationSummary":
        my_label = conversation.label_for(viewer_id)
        return cls(
            id=conversation.id,
            participant1_id=conversation.participant1_id,
            participant2_id=conversation.participant2_id,
            my_label=my_label,
            display_name=resolve_display_name(my_label, peer),
            peer=peer,
            last_message=conversation.last_message,
            last_message_at=conversation.last_message_at,
            updated_at=conversation.updated_at,
        )


class ConversationDetail(BaseModel):
    conversation: ConversationSummary
    messages: list[MessageRead]
