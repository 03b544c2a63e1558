from fastapi_users import schemas
from pydantic import BaseModel

from .profile import ProfileRead


class UserRead(schemas.BaseUser):
    pass


class UserCreate(schemas.BaseUserCreate):
    pass


class SessionRead(BaseModel):
    user: UserRead
    profile: ProfileRead | None = None
