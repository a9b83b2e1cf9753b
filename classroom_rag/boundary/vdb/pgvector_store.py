"""
PostgreSQL + pgvector similarity store.

Stores passage and summary embeddings in relational tables and ranks them
with pgvector's cosine distance operator. Every operation opens its own
short-lived session so concurrent streaming tasks never share one.

Dependencies: sqlalchemy, pgvector, classroom_rag.boundary.db
System role: Vector storage and similarity search over a group's corpus
"""

import logging
from typing import Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from classroom_rag.boundary.db.models import (
    DocumentModel,
    DocumentStatus,
    DocumentSummaryModel,
    PassageModel,
)
from classroom_rag.core.exceptions import VectorStoreError
from classroom_rag.models.retrieval import CorpusStats, RetrievedPassage, ScoredDocument

logger = logging.getLogger(__name__)


class PgVectorStore:
    """
    Similarity store backed by the `document_passages` and
    `document_summaries` tables.

    Distances are cosine distances in [0, 2]; lower is more similar.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """
        Initialize store.

        Args:
            session_factory: Factory producing sessions bound to a pgvector database
        """
        self._session_factory = session_factory

    async def add_passage(
        self,
        document_id: UUID,
        passage_index: int,
        content: str,
        embedding: Sequence[float],
    ) -> None:
        """
        Persist one embedded passage.

        Raises:
            VectorStoreError: If the insert fails
        """
        try:
            async with self._session_factory() as session:
                session.add(
                    PassageModel(
                        document_id=document_id,
                        passage_index=passage_index,
                        content=content,
                        embedding=list(embedding),
                    )
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise VectorStoreError(
                message="Failed to store passage",
                operation="insert",
                details={
                    "document_id": str(document_id),
                    "passage_index": passage_index,
                    "error": str(e),
                },
            ) from e

    async def add_summary(
        self,
        document_id: UUID,
        summary: str,
        key_topics: Sequence[str],
        embedding: Sequence[float],
    ) -> None:
        """
        Persist a document synopsis and its embedding.

        Raises:
            VectorStoreError: If the insert fails (including a duplicate summary)
        """
        try:
            async with self._session_factory() as session:
                session.add(
                    DocumentSummaryModel(
                        document_id=document_id,
                        summary=summary,
                        key_topics=list(key_topics),
                        summary_embedding=list(embedding),
                    )
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise VectorStoreError(
                message="Failed to store document summary",
                operation="insert",
                details={"document_id": str(document_id), "error": str(e)},
            ) from e

    async def search_summaries(
        self,
        group_id: UUID,
        query_embedding: Sequence[float],
        limit: int,
    ) -> list[ScoredDocument]:
        """
        Rank the group's documents by summary similarity.

        Args:
            group_id: Group whose corpus is searched
            query_embedding: Question embedding
            limit: Maximum number of documents

        Returns:
            list[ScoredDocument]: Best matches first

        Raises:
            VectorStoreError: If the query fails
        """
        distance = DocumentSummaryModel.summary_embedding.cosine_distance(list(query_embedding))
        stmt = (
            select(DocumentModel.id, DocumentModel.filename, distance.label("distance"))
            .join(DocumentModel, DocumentModel.id == DocumentSummaryModel.document_id)
            .where(DocumentModel.group_id == group_id)
            .order_by(distance, DocumentModel.id)
            .limit(limit)
        )
        rows = await self._execute(stmt, operation="search_summaries", group_id=group_id)
        return [
            ScoredDocument(document_id=row.id, source_label=row.filename, distance=float(row.distance))
            for row in rows
        ]

    async def search_passages(
        self,
        group_id: UUID,
        query_embedding: Sequence[float],
        limit: int,
        document_ids: Sequence[UUID] | None = None,
    ) -> list[RetrievedPassage]:
        """
        Rank passages of the group by similarity to the question.

        Args:
            group_id: Group whose corpus is searched
            query_embedding: Question embedding
            limit: Maximum number of passages
            document_ids: Restrict the search to these documents

        Returns:
            list[RetrievedPassage]: Best matches first

        Raises:
            VectorStoreError: If the query fails
        """
        distance = PassageModel.embedding.cosine_distance(list(query_embedding))
        stmt = (
            select(
                PassageModel.document_id,
                PassageModel.passage_index,
                PassageModel.content,
                DocumentModel.filename,
                distance.label("distance"),
            )
            .join(DocumentModel, DocumentModel.id == PassageModel.document_id)
            .where(DocumentModel.group_id == group_id)
        )
        if document_ids is not None:
            stmt = stmt.where(PassageModel.document_id.in_(list(document_ids)))
        stmt = stmt.order_by(distance, PassageModel.document_id, PassageModel.passage_index).limit(limit)

        rows = await self._execute(stmt, operation="search_passages", group_id=group_id)
        return [
            RetrievedPassage(
                source_label=row.filename,
                content=row.content,
                distance=float(row.distance),
                document_id=row.document_id,
                passage_index=row.passage_index,
            )
            for row in rows
        ]

    async def recent_passages(self, group_id: UUID, limit: int) -> list[RetrievedPassage]:
        """
        Passages of the most recently uploaded documents, without ranking.

        Used when the question cannot be embedded.
        """
        stmt = (
            select(
                PassageModel.document_id,
                PassageModel.passage_index,
                PassageModel.content,
                DocumentModel.filename,
            )
            .join(DocumentModel, DocumentModel.id == PassageModel.document_id)
            .where(DocumentModel.group_id == group_id)
            .order_by(DocumentModel.uploaded_at.desc(), PassageModel.passage_index)
            .limit(limit)
        )
        rows = await self._execute(stmt, operation="recent_passages", group_id=group_id)
        return [
            RetrievedPassage(
                source_label=row.filename,
                content=row.content,
                document_id=row.document_id,
                passage_index=row.passage_index,
            )
            for row in rows
        ]

    async def corpus_stats(self, group_id: UUID) -> CorpusStats:
        """
        Count fully indexed documents and their passages.

        Raises:
            VectorStoreError: If the query fails
        """
        stmt = (
            select(
                func.count(func.distinct(DocumentModel.id)).label("document_count"),
                func.count(PassageModel.id).label("passage_count"),
            )
            .select_from(DocumentModel)
            .outerjoin(PassageModel, PassageModel.document_id == DocumentModel.id)
            .where(
                DocumentModel.group_id == group_id,
                DocumentModel.processing_status == DocumentStatus.PROCESSED,
            )
        )
        rows = await self._execute(stmt, operation="stats", group_id=group_id)
        row = rows[0]
        return CorpusStats(document_count=row.document_count or 0, passage_count=row.passage_count or 0)

    async def _execute(self, stmt, operation: str, group_id: UUID) -> list:
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return list(result.all())
        except SQLAlchemyError as e:
            logger.warning(
                f"{__name__}:{operation} - Query failed",
                extra={"group_id": str(group_id), "error": str(e)},
            )
            raise VectorStoreError(
                message="Similarity store query failed",
                operation=operation,
                details={"group_id": str(group_id), "error": str(e)},
            ) from e
