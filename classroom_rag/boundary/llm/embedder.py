"""
Gemini embedding adapter.

Wraps GoogleGenerativeAIEmbeddings with a fixed output dimensionality (the
pgvector columns are sized to it) and an input length cap, so oversized
text is truncated instead of rejected by the service.

Dependencies: langchain_google_genai, classroom_rag.configs
System role: Embedding generation for passages, summaries and questions
"""

import logging

from langchain_core.embeddings import Embeddings
from langchain_google_genai import GoogleGenerativeAIEmbeddings

from classroom_rag.configs import get_settings
from classroom_rag.core.exceptions import EmbeddingError
from classroom_rag.observability import log_with_context

logger = logging.getLogger(__name__)


class EmbeddingService:
    """
    Text to vector adapter.

    The underlying client is created lazily so the service can be built
    without credentials (tests inject their own Embeddings implementation).
    """

    def __init__(
        self,
        embeddings: Embeddings | None = None,
        model: str | None = None,
        dimension: int | None = None,
        max_input_chars: int | None = None,
    ) -> None:
        """
        Initialize embedding service.

        Args:
            embeddings: LangChain Embeddings implementation (default: Gemini)
            model: Embedding model ID
            dimension: Output vector dimension
            max_input_chars: Input truncation cap
        """
        config = get_settings().embedding
        self._embeddings = embeddings
        self.model = model or config.model
        self.dimension = dimension or config.dimension
        self.max_input_chars = max_input_chars or config.max_input_chars

    @property
    def embeddings(self) -> Embeddings:
        if self._embeddings is None:
            self._embeddings = GoogleGenerativeAIEmbeddings(model=self.model)
            logger.info(
                f"{__name__}:embeddings - Initialized Gemini embeddings",
                extra={"model": self.model, "dimension": self.dimension},
            )
        return self._embeddings

    async def embed(self, text: str) -> list[float]:
        """
        Embed one text.

        Args:
            text: Input text; truncated to max_input_chars

        Returns:
            list[float]: Embedding vector

        Raises:
            EmbeddingError: If the service call fails or returns a wrong-sized vector
        """
        truncated = text[: self.max_input_chars]
        try:
            if isinstance(self.embeddings, GoogleGenerativeAIEmbeddings):
                vector = await self.embeddings.aembed_query(
                    truncated,
                    output_dimensionality=self.dimension,
                )
            else:
                vector = await self.embeddings.aembed_query(truncated)
        except Exception as e:
            raise EmbeddingError(
                "Embedding request failed",
                {"input_chars": len(truncated), "error": f"{type(e).__name__}: {e}"},
            ) from e

        if len(vector) != self.dimension:
            raise EmbeddingError(
                "Embedding has unexpected dimension",
                {"expected": self.dimension, "actual": len(vector)},
            )
        return list(vector)

    async def try_embed(self, text: str) -> list[float] | None:
        """Embed text, returning None (and logging) instead of raising."""
        try:
            return await self.embed(text)
        except EmbeddingError as e:
            log_with_context(
                logger,
                logging.WARNING,
                f"{__name__}:try_embed - Embedding failed",
                reason=e.message,
                **e.details,
            )
            return None
