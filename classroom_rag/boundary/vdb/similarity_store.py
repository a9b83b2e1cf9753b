"""
Similarity store contract.

The retriever and indexing pipeline depend on this protocol rather than on
a concrete database so tests can substitute an in-memory store.

Dependencies: classroom_rag.models.retrieval
System role: Abstraction over vector storage and similarity search
"""

from typing import Protocol, Sequence
from uuid import UUID

from classroom_rag.models.retrieval import CorpusStats, RetrievedPassage, ScoredDocument


class SimilarityStore(Protocol):
    """
    Operations the retrieval pipeline needs from a vector store.

    All search results are ordered by ascending cosine distance, ties broken
    by document id then passage index. Implementations raise VectorStoreError
    on storage failures.
    """

    async def add_passage(
        self,
        document_id: UUID,
        passage_index: int,
        content: str,
        embedding: Sequence[float],
    ) -> None: ...

    async def add_summary(
        self,
        document_id: UUID,
        summary: str,
        key_topics: Sequence[str],
        embedding: Sequence[float],
    ) -> None: ...

    async def search_summaries(
        self,
        group_id: UUID,
        query_embedding: Sequence[float],
        limit: int,
    ) -> list[ScoredDocument]: ...

    async def search_passages(
        self,
        group_id: UUID,
        query_embedding: Sequence[float],
        limit: int,
        document_ids: Sequence[UUID] | None = None,
    ) -> list[RetrievedPassage]: ...

    async def recent_passages(self, group_id: UUID, limit: int) -> list[RetrievedPassage]: ...

    async def corpus_stats(self, group_id: UUID) -> CorpusStats: ...
