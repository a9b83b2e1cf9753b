"""
Document CRUD operations.

Provides document queries for the indexing pipeline (status tracking) and
for context assembly (recent documents for the on-demand fallback, counts
for context sizing).

Dependencies: sqlalchemy, classroom_rag.boundary.db.models
System role: Document persistence operations
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_rag.boundary.db.base import utcnow
from classroom_rag.boundary.db.CRUD.base_crud import BaseCRUD
from classroom_rag.boundary.db.models.document_model import DocumentModel, DocumentStatus

LAST_ERROR_MAX_CHARS = 500


class DocumentCRUD(BaseCRUD[DocumentModel]):
    """
    CRUD operations for DocumentModel.

    Extends BaseCRUD with group-scoped queries and processing status updates.
    """

    def __init__(self) -> None:
        super().__init__(DocumentModel)

    async def get_recent_with_content(
        self,
        session: AsyncSession,
        group_id: UUID,
        limit: int,
    ) -> Sequence[DocumentModel]:
        """
        Most recently uploaded documents of a group that have extracted text.

        Args:
            session: Async database session
            group_id: Group UUID
            limit: Maximum number of documents

        Returns:
            Documents ordered by uploaded_at descending
        """
        stmt = (
            select(DocumentModel)
            .where(
                DocumentModel.group_id == group_id,
                DocumentModel.content.is_not(None),
                DocumentModel.content != "",
            )
            .order_by(DocumentModel.uploaded_at.desc(), DocumentModel.id)
            .limit(limit)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def count_processed(self, session: AsyncSession, group_id: UUID) -> int:
        """Number of documents in the group whose indexing completed."""
        stmt = select(func.count(DocumentModel.id)).where(
            DocumentModel.group_id == group_id,
            DocumentModel.processing_status == DocumentStatus.PROCESSED,
        )
        result = await session.execute(stmt)
        return int(result.scalar_one())

    async def update_status(
        self,
        session: AsyncSession,
        id: UUID,
        status: DocumentStatus,
        **fields,
    ) -> DocumentModel | None:
        """
        Update document processing status, with optional extra fields.

        Args:
            session: Async database session
            id: Document UUID
            status: New processing status
            **fields: Additional columns to set (content, passage_count, ...)

        Returns:
            Updated DocumentModel if found, None otherwise
        """
        return await self.update_by_id(session, id, processing_status=status, **fields)

    async def mark_processed(
        self,
        session: AsyncSession,
        id: UUID,
        passage_count: int,
    ) -> DocumentModel | None:
        return await self.update_status(
            session,
            id,
            DocumentStatus.PROCESSED,
            passage_count=passage_count,
            processed_at=utcnow(),
            last_error=None,
        )

    async def mark_failed(
        self,
        session: AsyncSession,
        id: UUID,
        error_message: str,
    ) -> DocumentModel | None:
        """
        Mark document as failed; the error text is cut to the column width.

        Args:
            session: Async database session
            id: Document UUID
            error_message: Human-readable error description

        Returns:
            Updated DocumentModel if found, None otherwise
        """
        return await self.update_status(
            session,
            id,
            DocumentStatus.FAILED,
            last_error=error_message[:LAST_ERROR_MAX_CHARS],
        )

    async def mark_summary_generated(self, session: AsyncSession, id: UUID) -> DocumentModel | None:
        return await self.update_by_id(session, id, summary_generated=True)


document_crud = DocumentCRUD()
