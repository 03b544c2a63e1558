"""Client views: in-memory state for each screen plus the timers it owns.

Every view is an async context manager. close() cancels the view's timers
whatever the exit path; results of requests still in flight when the view
closes are discarded.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional
from uuid import UUID

from chitchat.core.validation import DEFAULT_HANDLE_PREFIX, is_valid_handle
from chitchat.schemas.assistant import QuotaRead, QuotaState
from chitchat.schemas.conversation import (
    ConversationSummary,
    preview_text,
    resolve_display_name,
)
from chitchat.schemas.message import ImageBody, MessageRead, TextBody
from chitchat.services.quota import format_time_left

from .api import ChitChatClient
from .context import AppContext
from .errors import AssistantUnavailableError, InputError, QuotaExhaustedError
from .timers import PeriodicTask

logger = logging.getLogger(__name__)

COUNTDOWN_INTERVAL_SECONDS = 1.0
VERIFICATION_POLL_SECONDS = 2.0


class View:
    def __init__(self) -> None:
        self._timers: list[PeriodicTask] = []
        self.closed = False

    def _own(self, timer: PeriodicTask) -> PeriodicTask:
        self._timers.append(timer)
        return timer

    async def open(self) -> None:
        pass

    async def close(self) -> None:
        self.closed = True
        for timer in self._timers:
            await timer.stop()

    async def __aenter__(self):
        try:
            await self.open()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class ConversationListView(View):
    def __init__(self, api: ChitChatClient):
        super().__init__()
        self.api = api
        self.conversations: list[ConversationSummary] = []

    async def open(self) -> None:
        await self.refresh()

    async def refresh(self) -> list[ConversationSummary]:
        conversations = await self.api.list_conversations()
        if not self.closed:
            self.conversations = conversations
        return self.conversations

    def preview(self, conversation: ConversationSummary) -> str:
        return preview_text(conversation.last_message)

    async def rename(self, conversation_id: UUID, label: Optional[str]) -> None:
        """Renames on the server, then patches the in-memory row without a refetch."""
        await self.api.rename_conversation(conversation_id, label)
        label = (label or "").strip() or None
        for index, conversation in enumerate(self.conversations):
            if conversation.id == conversation_id:
                self.conversations[index] = conversation.model_copy(
                    update={
                        "my_label": label,
                        "display_name": resolve_display_name(label, conversation.peer),
                    }
                )
                break


@dataclass
class DisplayMessage:
    id: UUID
    sender_id: UUID
    body: Any
    created_at: datetime
    pending: bool = False
    is_read: bool = False

    @classmethod
    def from_read(cls, message: MessageRead) -> "DisplayMessage":
        return cls(
            id=message.id,
            sender_id=message.sender_id,
            body=message.body,
            created_at=message.created_at,
            is_read=message.is_read,
        )


class ConversationDetailView(View):
    def __init__(
        self,
        context: AppContext,
        conversation_id: UUID,
        on_change: Optional[Callable[[list[DisplayMessage]], None]] = None,
    ):
        super().__init__()
        self.context = context
        self.api = context.api
        self.conversation_id = conversation_id
        self.on_change = on_change
        self.conversation: Optional[ConversationSummary] = None
        self.messages: list[DisplayMessage] = []
        self.draft = ""
        self.sending = False

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change(self.messages)

    async def open(self) -> None:
        await self.reload()
        await self.api.mark_read(self.conversation_id)

    async def reload(self) -> None:
        detail = await self.api.get_conversation(self.conversation_id)
        if self.closed:
            return
        self.conversation = detail.conversation
        self.messages = [DisplayMessage.from_read(m) for m in detail.messages]
        self._changed()

    async def send(self, image_url: Optional[str] = None) -> Optional[MessageRead]:
        """
        Sends the draft text, or an image reference when image_url is given.

        The message is shown at once as pending. It is removed again when the
        send fails, and the draft is kept so it can be retried.
        """
        if image_url:
            body = ImageBody(image_url=image_url)
        else:
            text = self.draft.strip()
            if not text:
                return None
            body = TextBody(content=text)
        if self.sending or self.context.session is None:
            return None

        pending = DisplayMessage(
            id=uuid.uuid4(),
            sender_id=self.context.session.user.id,
            body=body,
            created_at=datetime.now(timezone.utc),
            pending=True,
        )
        self.sending = True
        self.messages.append(pending)
        self._changed()
        try:
            sent = await self.api.send_message(
                self.conversation_id, body.model_dump()
            )
        except Exception:
            if pending in self.messages:
                self.messages.remove(pending)
                self._changed()
            raise
        finally:
            self.sending = False

        if not image_url:
            self.draft = ""
        if not self.closed:
            await self.reload()
        return sent


class NewConversationView(View):
    def __init__(self, api: ChitChatClient, handle_prefix: str = DEFAULT_HANDLE_PREFIX):
        super().__init__()
        self.api = api
        self.handle_prefix = handle_prefix
        self.handle = ""
        self.label = ""

    async def submit(self) -> UUID:
        """Returns the id of the conversation to open, new or existing."""
        handle = self.handle.strip()
        if not is_valid_handle(handle, self.handle_prefix):
            raise InputError(
                f"Enter a 9-digit number starting with {self.handle_prefix}",
                field="peer_handle",
            )
        result = await self.api.start_conversation(handle, self.label.strip() or None)
        return result.conversation_id


@dataclass
class AssistantMessage:
    role: str
    text: str
    id: UUID = field(default_factory=uuid.uuid4)


class AssistantView(View):
    """
    The assistant screen. While the quota is exhausted a one-second countdown
    runs; at zero the quota is fetched again, which opens a fresh window.
    """

    def __init__(
        self,
        api: ChitChatClient,
        countdown_interval: float = COUNTDOWN_INTERVAL_SECONDS,
    ):
        super().__init__()
        self.api = api
        self.quota: Optional[QuotaRead] = None
        self.seconds_left = 0
        self.messages: list[AssistantMessage] = []
        self.countdown = self._own(
            PeriodicTask(countdown_interval, self._tick, name="assistant-countdown")
        )

    @property
    def can_ask(self) -> bool:
        return self.quota is not None and self.quota.state == QuotaState.ACTIVE_WINDOW

    @property
    def time_left(self) -> str:
        return format_time_left(self.seconds_left)

    async def open(self) -> None:
        await self.activate()

    async def activate(self) -> QuotaRead:
        quota = await self.api.get_quota()
        if not self.closed:
            self._apply_quota(quota)
        return quota

    def _apply_quota(self, quota: QuotaRead) -> None:
        self.quota = quota
        self.seconds_left = quota.seconds_until_reset
        if quota.state == QuotaState.EXHAUSTED:
            self.countdown.start()
        else:
            self.countdown.cancel()

    async def _tick(self) -> None:
        self.seconds_left = max(0, self.seconds_left - 1)
        if self.seconds_left == 0:
            self.countdown.cancel()
            await self.activate()

    async def ask(self, text: str) -> Optional[str]:
        text = text.strip()
        if not text or not self.can_ask:
            return None

        question = AssistantMessage(role="user", text=text)
        self.messages.append(question)
        try:
            answer = await self.api.ask(text)
        except (QuotaExhaustedError, AssistantUnavailableError):
            # The server-side count changed or was already spent
            self.messages.remove(question)
            if not self.closed:
                await self.activate()
            raise
        except Exception:
            self.messages.remove(question)
            raise

        if self.closed:
            return answer.answer
        self.messages.append(AssistantMessage(role="assistant", text=answer.answer))
        self._apply_quota(answer.quota)
        return answer.answer


class VerificationView(View):
    """Polls the session every two seconds until the email is verified."""

    def __init__(
        self,
        context: AppContext,
        on_verified: Optional[Callable[[], Awaitable[None]]] = None,
        poll_interval: float = VERIFICATION_POLL_SECONDS,
    ):
        super().__init__()
        self.context = context
        self.on_verified = on_verified
        self.verified = False
        self.poll = self._own(
            PeriodicTask(poll_interval, self._check, name="verification-poll")
        )

    async def open(self) -> None:
        await self._check()
        if not self.verified:
            self.poll.start()

    async def _check(self) -> None:
        session = await self.context.refresh_session()
        if self.closed or session is None or not session.user.is_verified:
            return
        self.verified = True
        self.poll.cancel()
        if self.on_verified is not None:
            await self.on_verified()
