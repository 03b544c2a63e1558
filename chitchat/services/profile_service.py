import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from chitchat.core.config import settings
from chitchat.core.validation import generate_handle
from chitchat.models import Profile, User
from chitchat.repositories.profile_repository import ProfileRepository
from chitchat.schemas.profile import ProfileUpdate

from .exceptions import DatabaseError, ServiceError

logger = logging.getLogger(__name__)

MAX_HANDLE_ATTEMPTS = 10


class ProfileService:
    def __init__(self, profile_repository: ProfileRepository):
        self.profile_repo = profile_repository
        self.session = profile_repository.session

    async def create_profile_for_user(self, user: User) -> Profile:
        """Creates the user's profile with a freshly drawn unique handle."""
        # A rollback expires the user, so keep its id
        user_id = user.id
        existing = await self.profile_repo.get_profile_by_user_id(user_id)
        if existing:
            return existing

        for attempt in range(1, MAX_HANDLE_ATTEMPTS + 1):
            candidate = generate_handle(settings.HANDLE_PREFIX)
            if await self.profile_repo.get_profile_by_unique_number(candidate):
                continue
            try:
                profile = await self.profile_repo.create_profile(user_id, candidate)
                await self.session.commit()
                await self.session.refresh(profile)
                logger.info(f"Assigned handle {candidate} to user {user_id}")
                return profile
            except IntegrityError as e:
                # Another registration took the same handle between check and insert
                await self.session.rollback()
                logger.warning(
                    f"Handle collision on attempt {attempt} for user {user_id}: {e}"
                )
            except SQLAlchemyError as e:
                await self.session.rollback()
                logger.error(f"Database error creating profile: {e}", exc_info=True)
                raise DatabaseError("Failed to create the user profile.")

        raise ServiceError("Could not assign a unique handle, please try again.")

    async def get_profile(self, user: User) -> Profile:
        """The user's profile, assigning a handle first if registration left none."""
        try:
            profile = await self.profile_repo.get_profile_by_user_id(user.id)
        except SQLAlchemyError as e:
            logger.error(f"Database error fetching profile: {e}", exc_info=True)
            raise DatabaseError("Failed to fetch the profile.")
        if not profile:
            logger.warning(f"User {user.id} has no profile, assigning a handle now")
            profile = await self.create_profile_for_user(user)
        return profile

    async def update_profile(self, user: User, update: ProfileUpdate) -> Profile:
        profile = await self.get_profile(user)
        fields = update.model_dump(exclude_unset=True)
        if "display_name" in fields and fields["display_name"] is not None:
            fields["display_name"] = fields["display_name"].strip() or None
        try:
            profile = await self.profile_repo.update_profile(profile, **fields)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Database error updating profile: {e}", exc_info=True)
            raise DatabaseError("Failed to update the profile.")
        return profile
