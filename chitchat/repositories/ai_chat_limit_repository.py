from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chitchat.models import AIChatLimit

from .base import BaseRepository


class AIChatLimitRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session)

    async def get_by_user_id(self, user_id: UUID) -> AIChatLimit | None:
        stmt = select(AIChatLimit).filter(AIChatLimit.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def create(self, user_id: UUID, now: datetime) -> AIChatLimit:
        record = AIChatLimit(user_id=user_id, questions_count=0, last_reset_at=now)
        self.session.add(record)
        await self.session.flush()
        return record

    async def reset(self, record: AIChatLimit, now: datetime) -> AIChatLimit:
        record.questions_count = 0
        record.last_reset_at = now
        self.session.add(record)
        await self.session.flush()
        return record

    async def increment(self, record: AIChatLimit) -> AIChatLimit:
        record.questions_count = record.questions_count + 1
        self.session.add(record)
        await self.session.flush()
        return record
