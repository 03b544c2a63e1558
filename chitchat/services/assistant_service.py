import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from chitchat.core.config import settings
from chitchat.models import User
from chitchat.repositories.ai_chat_limit_repository import AIChatLimitRepository
from chitchat.schemas.assistant import QuotaState

from . import assistant_client
from .exceptions import DatabaseError, QuotaExceededError, UpstreamError
from .quota import QuotaSnapshot, evaluate_quota, fresh_window

logger = logging.getLogger(__name__)


class AssistantService:
    def __init__(
        self,
        limit_repository: AIChatLimitRepository,
        question_limit: int | None = None,
        reset_interval: timedelta | None = None,
    ):
        self.limit_repo = limit_repository
        self.session = limit_repository.session
        self.question_limit = (
            question_limit if question_limit is not None else settings.QUESTION_LIMIT
        )
        self.reset_interval = reset_interval or timedelta(
            hours=settings.RESET_INTERVAL_HOURS
        )

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _evaluate(self, record, now: datetime) -> QuotaSnapshot:
        return evaluate_quota(
            record.questions_count if record else None,
            record.last_reset_at if record else None,
            now,
            question_limit=self.question_limit,
            reset_interval=self.reset_interval,
        )

    async def activate(self, user: User) -> QuotaSnapshot:
        """
        Loads the user's quota, creating a record for first-time users and
        collapsing an expired window to a fresh one before it is reported.
        """
        now = self._now()
        try:
            record = await self.limit_repo.get_by_user_id(user.id)
            snapshot = self._evaluate(record, now)

            if snapshot.state == QuotaState.NO_RECORD:
                try:
                    await self.limit_repo.create(user.id, now)
                    await self.session.commit()
                except IntegrityError:
                    # Created concurrently by another request; use that row
                    await self.session.rollback()
                    record = await self.limit_repo.get_by_user_id(user.id)
                    return self._evaluate(record, self._now())
                logger.info(f"Opened first quota window for user {user.id}")
                return fresh_window(
                    now,
                    question_limit=self.question_limit,
                    reset_interval=self.reset_interval,
                )

            if snapshot.state == QuotaState.EXPIRED_PENDING_RESET:
                await self.limit_repo.reset(record, now)
                await self.session.commit()
                logger.info(f"Quota window expired and reset for user {user.id}")
                return fresh_window(
                    now,
                    question_limit=self.question_limit,
                    reset_interval=self.reset_interval,
                )
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Database error loading quota for {user.id}: {e}", exc_info=True)
            raise DatabaseError("Failed to load the assistant quota.")

        return snapshot

    async def ask(self, user: User, text: str) -> tuple[str, QuotaSnapshot]:
        """
        Charges one question, then asks the upstream. The charge is committed
        before the upstream call and is kept when the call fails.
        """
        snapshot = await self.activate(user)
        if not snapshot.can_ask:
            raise QuotaExceededError(
                "You have used all your questions for now.",
                seconds_until_reset=snapshot.seconds_until_reset,
            )

        try:
            record = await self.limit_repo.get_by_user_id(user.id)
            await self.limit_repo.increment(record)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Database error charging quota for {user.id}: {e}", exc_info=True)
            raise DatabaseError("Failed to update the assistant quota.")

        charged = self._evaluate(record, self._now())

        try:
            answer = await assistant_client.ask_assistant(text)
        except assistant_client.AssistantUpstreamError as e:
            logger.error(f"Assistant upstream failed for user {user.id}: {e}")
            raise UpstreamError()

        return answer, charged
