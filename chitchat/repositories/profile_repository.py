from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chitchat.models import Profile

from .base import BaseRepository


class ProfileRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session)

    async def get_profile_by_user_id(self, user_id: UUID) -> Profile | None:
        stmt = select(Profile).filter(Profile.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_profile_by_unique_number(self, unique_number: str) -> Profile | None:
        stmt = select(Profile).filter(Profile.unique_number == unique_number)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_profiles_by_user_ids(self, user_ids: list[UUID]) -> dict[UUID, Profile]:
        if not user_ids:
            return {}
        stmt = select(Profile).filter(Profile.user_id.in_(user_ids))
        result = await self.session.execute(stmt)
        return {profile.user_id: profile for profile in result.scalars().all()}

    async def create_profile(self, user_id: UUID, unique_number: str) -> Profile:
        """Adds a profile to the session and flushes it; the caller commits."""
        profile = Profile(user_id=user_id, unique_number=unique_number)
        self.session.add(profile)
        await self.session.flush()
        return profile

    async def update_profile(self, profile: Profile, **fields) -> Profile:
        for name, value in fields.items():
            setattr(profile, name, value)
        self.session.add(profile)
        await self.session.flush()
        await self.session.refresh(profile)
        return profile
