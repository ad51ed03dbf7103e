"""Repository for User records."""

from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from sowflow.db.models.user import UserRow
from sowflow.repositories.base import BaseRepository


class UserRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, UserRow)

    async def get(self, user_id: str) -> UserRow | None:
        return await self.get_by_id("user_id", user_id)

    async def get_by_email(self, email: str) -> UserRow | None:
        return await self.get_where(email=email)

    async def update_last_login(self, user: UserRow) -> None:
        user.last_login = datetime.now(timezone.utc)
        await self.session.flush()
