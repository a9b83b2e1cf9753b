"""
Generic CRUD operations shared by model-specific CRUD classes.

Callers own the session and the transaction: methods flush but never commit.

Dependencies: sqlalchemy
System role: Foundation for database CRUD operations
"""

from typing import Generic, Sequence, TypeVar
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_rag.boundary.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseCRUD(Generic[ModelT]):
    """
    Generic CRUD for a single SQLAlchemy model.

    Type Parameters:
        ModelT: SQLAlchemy model class inheriting from Base
    """

    def __init__(self, model: type[ModelT]) -> None:
        self.model = model

    async def create(self, session: AsyncSession, **kwargs) -> ModelT:
        """
        Insert a new row and return it with generated id and timestamps.

        Args:
            session: Async database session
            **kwargs: Model field values

        Returns:
            Created model instance
        """
        instance = self.model(**kwargs)
        session.add(instance)
        await session.flush()
        await session.refresh(instance)
        return instance

    async def get_by_id(self, session: AsyncSession, id: UUID) -> ModelT | None:
        """Fetch one row by primary key, or None."""
        stmt = select(self.model).where(self.model.id == id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_ids(self, session: AsyncSession, ids: Sequence[UUID]) -> Sequence[ModelT]:
        """Fetch all rows whose primary key is in `ids` (unordered)."""
        if not ids:
            return []
        stmt = select(self.model).where(self.model.id.in_(list(ids)))
        result = await session.execute(stmt)
        return result.scalars().all()

    async def update_by_id(self, session: AsyncSession, id: UUID, **kwargs) -> ModelT | None:
        """
        Set fields on a row by primary key.

        Args:
            session: Async database session
            id: Primary key
            **kwargs: Fields to overwrite

        Returns:
            Updated instance if found, None otherwise
        """
        instance = await self.get_by_id(session, id)
        if instance is None:
            return None
        for field, value in kwargs.items():
            setattr(instance, field, value)
        await session.flush()
        return instance

    async def delete_by_id(self, session: AsyncSession, id: UUID) -> bool:
        """Delete a row by primary key. Returns True if a row was removed."""
        stmt = delete(self.model).where(self.model.id == id)
        result = await session.execute(stmt)
        return result.rowcount > 0

    async def exists(self, session: AsyncSession, id: UUID) -> bool:
        stmt = select(self.model.id).where(self.model.id == id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None
