"""
Base repository with common CRUD operations.

Feature repositories inherit from this and add their own queries.
Uses SQLAlchemy async session; nothing here commits, callers own the
transaction boundary.

Usage:
    class StravaTokenRepository(BaseRepository[StravaToken]):
        def __init__(self, db: AsyncSession):
            super().__init__(db, StravaToken)
"""

from typing import TypeVar, Generic, Type

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """Async CRUD helpers bound to one model class."""

    def __init__(self, db: AsyncSession, model: Type[T]):
        self.db = db
        self.model = model

    async def get_by_id(self, id: str | int) -> T | None:
        """Get entity by primary key, or None."""
        return await self.db.get(self.model, id)

    async def get_by(self, **kwargs) -> T | None:
        """
        Get single entity by arbitrary field values.

        Args:
            **kwargs: Field name-value pairs to filter by

        Returns:
            Matching entity or None
        """
        query = select(self.model)
        for key, value in kwargs.items():
            query = query.where(getattr(self.model, key) == value)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def create(self, **kwargs) -> T:
        """Add a new entity and flush so generated columns are populated."""
        entity = self.model(**kwargs)
        self.db.add(entity)
        await self.db.flush()
        return entity

    async def update(self, entity: T, **kwargs) -> T:
        """Set fields on an entity and flush."""
        for key, value in kwargs.items():
            setattr(entity, key, value)
        await self.db.flush()
        return entity

    async def delete_where(self, **kwargs) -> int:
        """
        Delete every row matching the given field values.

        Returns:
            Number of rows deleted
        """
        stmt = delete(self.model)
        for key, value in kwargs.items():
            stmt = stmt.where(getattr(self.model, key) == value)
        result = await self.db.execute(stmt)
        await self.db.flush()
        return result.rowcount or 0
