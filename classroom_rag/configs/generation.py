"""
Generation configuration.

Chat model parameters, call timeout and message staleness threshold.

Dependencies: pydantic, pydantic_settings
System role: Streaming generation configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from classroom_rag.configs.base import BaseSettings


class GenerationSettings(BaseSettings):
    """Streaming answer generation settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="GENERATION_",
        case_sensitive=False,
        extra="ignore",
    )

    model: str = Field(default="gemini-2.5-flash", description="Google Gemini chat model ID")
    temperature: float = Field(default=0.3, description="Sampling temperature", ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=2000, description="Answer token limit", gt=0)
    timeout_seconds: float = Field(
        default=30.0,
        description="Upper bound on one streaming generation call",
        gt=0.0,
    )
    stale_after_seconds: int = Field(
        default=300,
        description="Age after which a message still 'generating' is treated as abandoned",
        gt=0,
    )
    assistant_name: str = Field(default="Assistant", description="Default assistant display name")
