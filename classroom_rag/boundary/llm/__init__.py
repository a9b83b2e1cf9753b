"""LangChain / Gemini adapters for embeddings and chat generation."""

from classroom_rag.boundary.llm.embedder import EmbeddingService
from classroom_rag.boundary.llm.generator import StreamingGenerator, classify_generation_error

__all__ = ["EmbeddingService", "StreamingGenerator", "classify_generation_error"]
