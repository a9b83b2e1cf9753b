"""
Streaming event schemas for WebSocket chat.

Defines event types and payloads exchanged with the requester's connection.

Dependencies: pydantic
System role: Streaming protocol schemas
"""

from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class StreamEventType(str, Enum):
    """Server-to-client event types for streaming chat."""

    CONNECTED = "connected"
    GENERATION_STARTED = "generation_started"
    GENERATION_CHUNK = "generation_chunk"
    GENERATION_ENDED = "generation_ended"
    ERROR = "error"
    PONG = "pong"


class ClientEventType(str, Enum):
    """Client-to-server event types."""

    ASK = "ask"
    STOP = "stop"
    PING = "ping"


class GenerationEndReason(str, Enum):
    """Why a generation stopped."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class StreamEvent(BaseModel):
    """
    Base streaming event model.

    Attributes:
        event: Event type identifier
        data: Event-specific payload
    """

    event: StreamEventType
    data: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {"event": self.event.value, "data": self.data}

    @classmethod
    def generation_started(cls, message_id: UUID) -> "StreamEvent":
        return cls(
            event=StreamEventType.GENERATION_STARTED,
            data={"message_id": str(message_id)},
        )

    @classmethod
    def generation_chunk(cls, message_id: UUID, text: str) -> "StreamEvent":
        return cls(
            event=StreamEventType.GENERATION_CHUNK,
            data={"message_id": str(message_id), "text": text},
        )

    @classmethod
    def generation_ended(
        cls,
        message_id: UUID,
        reason: GenerationEndReason,
        sources_used: list[str] | None = None,
    ) -> "StreamEvent":
        return cls(
            event=StreamEventType.GENERATION_ENDED,
            data={
                "message_id": str(message_id),
                "reason": reason.value,
                "cancelled": reason == GenerationEndReason.CANCELLED,
                "sources_used": sources_used or [],
            },
        )

    @classmethod
    def error(cls, code: str, message: str) -> "StreamEvent":
        return cls(event=StreamEventType.ERROR, data={"code": code, "message": message})


class ClientAskEvent(BaseModel):
    """
    Client ask event payload.

    Attributes:
        question: Natural-language question about the group's documents
    """

    question: str = Field(min_length=1)
