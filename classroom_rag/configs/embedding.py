"""
Embedding service configuration.

Dependencies: pydantic, pydantic_settings
System role: Embedding model and vector dimension settings
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from classroom_rag.configs.base import BaseSettings


class EmbeddingSettings(BaseSettings):
    """Google Gemini embedding configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="EMBEDDING_",
        case_sensitive=False,
        extra="ignore",
    )

    model: str = Field(
        default="models/gemini-embedding-001",
        description="Google Gemini embedding model ID",
    )
    dimension: int = Field(
        default=1536,
        description="Embedding vector dimension (must match the pgvector columns)",
        gt=0,
    )
    max_input_chars: int = Field(
        default=8000,
        description="Input text is truncated to this many characters before embedding",
        gt=0,
    )
