"""
Document summary CRUD operations.

Dependencies: sqlalchemy, classroom_rag.boundary.db.models
System role: Summary existence checks and reindex cleanup
"""

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_rag.boundary.db.CRUD.base_crud import BaseCRUD
from classroom_rag.boundary.db.models.summary_model import DocumentSummaryModel


class DocumentSummaryCRUD(BaseCRUD[DocumentSummaryModel]):
    """CRUD operations for DocumentSummaryModel."""

    def __init__(self) -> None:
        super().__init__(DocumentSummaryModel)

    async def get_by_document_id(
        self,
        session: AsyncSession,
        document_id: UUID,
    ) -> DocumentSummaryModel | None:
        stmt = select(DocumentSummaryModel).where(DocumentSummaryModel.document_id == document_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def exists_for_document(self, session: AsyncSession, document_id: UUID) -> bool:
        stmt = select(DocumentSummaryModel.id).where(DocumentSummaryModel.document_id == document_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def delete_for_document(self, session: AsyncSession, document_id: UUID) -> bool:
        stmt = delete(DocumentSummaryModel).where(DocumentSummaryModel.document_id == document_id)
        result = await session.execute(stmt)
        return result.rowcount > 0


summary_crud = DocumentSummaryCRUD()
