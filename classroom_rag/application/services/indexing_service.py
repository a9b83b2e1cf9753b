"""
Document indexing pipeline.

Sanitizes extracted text, splits it into overlapping passages, embeds and
stores each passage, records processing status on the document, then
triggers summary generation. A passage whose embedding fails is skipped and
logged; the rest of the document is still indexed.

Dependencies: sqlalchemy, classroom_rag.core, classroom_rag.boundary
System role: Write path into the similarity store
"""

import asyncio
import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from classroom_rag.application.services.summary_service import SummaryService
from classroom_rag.boundary.db.CRUD.document_crud import document_crud
from classroom_rag.boundary.db.CRUD.passage_crud import passage_crud
from classroom_rag.boundary.db.CRUD.summary_crud import summary_crud
from classroom_rag.boundary.db.models.document_model import DocumentStatus
from classroom_rag.boundary.llm.embedder import EmbeddingService
from classroom_rag.boundary.vdb.similarity_store import SimilarityStore
from classroom_rag.configs import get_settings
from classroom_rag.core.exceptions import DocumentNotFoundError, VectorStoreError
from classroom_rag.core.passage_splitter import split_into_passages
from classroom_rag.models.document import IndexingResult, SummaryResult
from classroom_rag.observability import log_exception_with_context, log_with_context

logger = logging.getLogger(__name__)


def sanitize_text(text: str) -> str:
    """Remove NUL bytes, which PostgreSQL text columns reject."""
    return text.replace("\x00", "")


class IndexingService:
    """
    Indexes one document at a time per document id.

    A document already being indexed is not indexed again concurrently.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        store: SimilarityStore,
        embedder: EmbeddingService,
        summary_service: SummaryService,
    ) -> None:
        self.config = get_settings().indexing
        self._session_factory = session_factory
        self._store = store
        self._embedder = embedder
        self._summary_service = summary_service
        self._in_progress: set[UUID] = set()

    async def index_document(self, document_id: UUID, text: str | None = None) -> IndexingResult:
        """
        Index a document's text.

        Args:
            document_id: Document UUID
            text: Extracted text; defaults to the stored document content

        Returns:
            IndexingResult: Passage counts and summary outcome

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        if document_id in self._in_progress:
            return IndexingResult(document_id=document_id, success=False, error="Document is already being indexed")

        self._in_progress.add(document_id)
        try:
            return await self._index(document_id, text)
        finally:
            self._in_progress.discard(document_id)

    async def reindex_document(self, document_id: UUID) -> IndexingResult:
        """
        Drop a document's passages and summary, then index its stored content again.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        if document_id in self._in_progress:
            return IndexingResult(document_id=document_id, success=False, error="Document is already being indexed")

        async with self._session_factory() as session:
            if not await document_crud.exists(session, document_id):
                raise DocumentNotFoundError(str(document_id))
            removed = await passage_crud.delete_for_document(session, document_id)
            await summary_crud.delete_for_document(session, document_id)
            await document_crud.update_status(
                session,
                document_id,
                DocumentStatus.PENDING,
                passage_count=0,
                summary_generated=False,
            )
            await session.commit()

        log_with_context(
            logger,
            logging.INFO,
            f"{__name__}:reindex_document - Cleared previous index",
            document_id=document_id,
            passages_removed=removed,
        )
        return await self.index_document(document_id)

    async def _index(self, document_id: UUID, text: str | None) -> IndexingResult:
        async with self._session_factory() as session:
            document = await document_crud.get_by_id(session, document_id)
            if document is None:
                raise DocumentNotFoundError(str(document_id))
            source = sanitize_text(text if text is not None else (document.content or ""))

            if len(source.strip()) < self.config.min_document_chars:
                error = "No meaningful text content could be extracted from the document"
                await document_crud.mark_failed(session, document_id, error)
                await session.commit()
                log_with_context(
                    logger,
                    logging.WARNING,
                    f"{__name__}:index_document - Rejected document without text",
                    document_id=document_id,
                    chars=len(source.strip()),
                )
                return IndexingResult(document_id=document_id, success=False, error=error)

            await document_crud.update_status(session, document_id, DocumentStatus.PROCESSING)
            await document_crud.update_status(session, document_id, DocumentStatus.EXTRACTED, content=source)
            await session.commit()

        try:
            stored, skipped, total = await self._store_passages(document_id, source)
            async with self._session_factory() as session:
                await document_crud.mark_processed(session, document_id, passage_count=stored)
                await session.commit()
        except SQLAlchemyError as e:
            log_exception_with_context(
                logger,
                f"{__name__}:index_document - Indexing failed",
                e,
                document_id=document_id,
            )
            await self._mark_failed(document_id, str(e))
            return IndexingResult(document_id=document_id, success=False, error=str(e)[:500])

        log_with_context(
            logger,
            logging.INFO,
            f"{__name__}:index_document - Passages stored",
            document_id=document_id,
            passages_total=total,
            passages_stored=stored,
            passages_skipped=skipped,
        )

        try:
            summary = await self._summary_service.generate_summary(document_id, source)
        except SQLAlchemyError as e:
            log_exception_with_context(
                logger,
                f"{__name__}:index_document - Summary generation failed",
                e,
                level=logging.WARNING,
                document_id=document_id,
            )
            summary = SummaryResult(document_id=document_id, success=False, message="Summary generation failed")

        return IndexingResult(
            document_id=document_id,
            success=True,
            passages_total=total,
            passages_stored=stored,
            passages_skipped=skipped,
            summary=summary,
        )

    async def _store_passages(self, document_id: UUID, text: str) -> tuple[int, int, int]:
        passages = split_into_passages(text, self.config.passage_size, self.config.passage_overlap)
        stored = 0
        skipped = 0

        for index, passage in enumerate(passages):
            embedding = await self._embedder.try_embed(passage)
            if embedding is None:
                skipped += 1
                log_with_context(
                    logger,
                    logging.WARNING,
                    f"{__name__}:index_document - Skipping passage without embedding",
                    document_id=document_id,
                    passage_index=index,
                )
            else:
                try:
                    await self._store.add_passage(document_id, index, passage, embedding)
                    stored += 1
                except VectorStoreError as e:
                    skipped += 1
                    log_exception_with_context(
                        logger,
                        f"{__name__}:index_document - Skipping passage that failed to store",
                        e,
                        level=logging.WARNING,
                        document_id=document_id,
                        passage_index=index,
                    )

            if index < len(passages) - 1 and self.config.embedding_delay_seconds > 0:
                await asyncio.sleep(self.config.embedding_delay_seconds)

        return stored, skipped, len(passages)

    async def _mark_failed(self, document_id: UUID, error: str) -> None:
        try:
            async with self._session_factory() as session:
                await document_crud.mark_failed(session, document_id, error)
                await session.commit()
        except SQLAlchemyError as e:
            log_exception_with_context(
                logger,
                f"{__name__}:index_document - Could not record failure",
                e,
                document_id=document_id,
            )
