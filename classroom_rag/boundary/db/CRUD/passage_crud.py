"""
Passage CRUD operations.

Passage rows are written by the similarity store; this module covers the
bookkeeping queries the indexing pipeline needs around them.

Dependencies: sqlalchemy, classroom_rag.boundary.db.models
System role: Passage bookkeeping (counts, reindex cleanup)
"""

from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_rag.boundary.db.CRUD.base_crud import BaseCRUD
from classroom_rag.boundary.db.models.passage_model import PassageModel


class PassageCRUD(BaseCRUD[PassageModel]):
    """CRUD operations for PassageModel."""

    def __init__(self) -> None:
        super().__init__(PassageModel)

    async def count_for_document(self, session: AsyncSession, document_id: UUID) -> int:
        stmt = select(func.count(PassageModel.id)).where(PassageModel.document_id == document_id)
        result = await session.execute(stmt)
        return int(result.scalar_one())

    async def delete_for_document(self, session: AsyncSession, document_id: UUID) -> int:
        """
        Remove every passage of a document.

        Returns:
            Number of rows deleted
        """
        stmt = delete(PassageModel).where(PassageModel.document_id == document_id)
        result = await session.execute(stmt)
        return result.rowcount


passage_crud = PassageCRUD()
