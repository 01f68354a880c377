"""
User repository - encapsulates all user data access.
"""

from sqlalchemy import select

from lendoo.db.models import User
from lendoo.db.repositories.base_repository import BaseRepository


class UserRepository(BaseRepository[User]):
    """User-specific queries. Extends base CRUD with domain logic."""

    def __init__(self, session):
        super().__init__(session, User)

    async def get_by_email(self, email: str) -> User | None:
        result = await self.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()
