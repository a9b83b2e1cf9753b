"""
Retrieval configuration.

Dependencies: pydantic, pydantic_settings
System role: Hierarchical retrieval and fallback limits
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from classroom_rag.configs.base import BaseSettings


class RetrievalSettings(BaseSettings):
    """Limits used by the hierarchical retriever and its fallbacks."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RETRIEVAL_",
        case_sensitive=False,
        extra="ignore",
    )

    summary_candidates: int = Field(
        default=3,
        description="Documents kept after the summary similarity stage",
        gt=0,
    )
    recency_fallback_limit: int = Field(
        default=3,
        description="Passages returned when the query cannot be embedded",
        gt=0,
    )
    on_demand_documents: int = Field(
        default=4,
        description="Most recent documents excerpted when retrieval is empty",
        gt=0,
    )
    on_demand_chars_per_document: int = Field(
        default=2000,
        description="Excerpt length for on-demand fallback documents",
        gt=0,
    )
