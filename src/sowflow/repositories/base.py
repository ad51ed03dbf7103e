"""Generic async repository shared by every table in the workflow store."""

from typing import Any, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sowflow.db.base import Base

T = TypeVar("T", bound=Base)


class BaseRepository:
    """Thin CRUD layer; callers own the transaction and commit it."""

    def __init__(self, session: AsyncSession, model_class: type[T]):
        self.session = session
        self.model_class = model_class

    async def get_where(self, **criteria: Any) -> T | None:
        """Single row matching every column=value pair, or None."""
        stmt = select(self.model_class).filter_by(**criteria)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_id(self, pk_field: str, pk_value: str) -> T | None:
        return await self.get_where(**{pk_field: pk_value})

    async def list_by_field(self, field: str, value: Any) -> list[T]:
        stmt = select(self.model_class).filter_by(**{field: value})
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, **kwargs: Any) -> T:
        """Add a row and flush so server-side defaults and constraints apply now."""
        row = self.model_class(**kwargs)
        self.session.add(row)
        await self.session.flush()
        return row

    async def update(self, row: T, **changes: Any) -> T:
        for key, value in changes.items():
            setattr(row, key, value)
        await self.session.flush()
        return row
