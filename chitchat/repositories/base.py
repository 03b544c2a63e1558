from sqlalchemy.ext.asyncio import AsyncSession


class BaseRepository:
    """Holds the request-scoped session shared by every repository of a request."""

    def __init__(self, session: AsyncSession):
        self.session = session
