"""Vector storage and similarity search."""

from classroom_rag.boundary.vdb.pgvector_store import PgVectorStore
from classroom_rag.boundary.vdb.similarity_store import SimilarityStore

__all__ = ["PgVectorStore", "SimilarityStore"]
