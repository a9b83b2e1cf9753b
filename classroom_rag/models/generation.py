"""
Streaming generation result types.

The generation adapter yields a discriminated union instead of raw model
chunks: text increments, an explicit end marker, or a classified error.

Dependencies: pydantic
System role: Contract between the generation adapter and the coordinator
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from classroom_rag.core.exceptions import GenerationErrorKind


class GenerationChunk(BaseModel):
    """Incremental output unit from the generation service."""

    type: Literal["chunk"] = "chunk"
    text: str


class GenerationEnd(BaseModel):
    """The service finished the answer normally."""

    type: Literal["end"] = "end"


class GenerationError(BaseModel):
    """The service failed; no further units follow."""

    type: Literal["error"] = "error"
    kind: GenerationErrorKind = GenerationErrorKind.UNKNOWN
    detail: str = ""


GenerationResult = Annotated[
    Union[GenerationChunk, GenerationEnd, GenerationError],
    Field(discriminator="type"),
]
