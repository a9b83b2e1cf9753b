"""
Indexing pipeline configuration.

Passage window sizing and summary generation limits.

Dependencies: pydantic, pydantic_settings
System role: Document indexing configuration
"""

from pydantic import Field, model_validator
from pydantic_settings import SettingsConfigDict

from classroom_rag.configs.base import BaseSettings


class IndexingSettings(BaseSettings):
    """Settings for splitting, embedding and summarizing documents."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="INDEXING_",
        case_sensitive=False,
        extra="ignore",
    )

    passage_size: int = Field(default=1000, description="Passage window in characters", gt=0)
    passage_overlap: int = Field(
        default=200,
        description="Characters shared by consecutive passages",
        ge=0,
    )
    embedding_delay_seconds: float = Field(
        default=0.1,
        description="Pause between passage embedding calls to stay under rate limits",
        ge=0.0,
    )
    min_document_chars: int = Field(
        default=10,
        description="Documents with less meaningful text are rejected",
    )
    min_summary_chars: int = Field(
        default=100,
        description="Documents shorter than this are not summarized",
    )
    summary_input_chars: int = Field(default=4000, description="Content cap for the synopsis prompt")
    topics_input_chars: int = Field(default=2000, description="Content cap for the topics prompt")
    summary_max_tokens: int = Field(default=400, description="Synopsis output token limit")
    topics_max_tokens: int = Field(default=100, description="Topic list output token limit")

    @model_validator(mode="after")
    def _check_window(self) -> "IndexingSettings":
        if self.passage_overlap >= self.passage_size:
            raise ValueError("passage_overlap must be smaller than passage_size")
        return self
