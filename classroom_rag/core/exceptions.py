"""
Exception hierarchy for the classroom RAG backend.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

import enum
from typing import Any


class ClassroomRagException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class DocumentNotFoundError(ClassroomRagException):
    """Raised when a document cannot be found."""

    def __init__(self, document_id: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["document_id"] = document_id
        super().__init__(f"Document not found: {document_id}", details)


class EmbeddingError(ClassroomRagException):
    """Raised when the embedding service fails for one input."""

    pass


class VectorStoreError(ClassroomRagException):
    """Raised when similarity store operations fail."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize vector store error.

        Args:
            message: Error message
            operation: Operation that failed (insert, search, stats)
            details: Additional context
        """
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class RetrievalDegradedError(ClassroomRagException):
    """
    Raised inside the retriever when semantic search is unavailable.

    Always recovered by a fallback path and never surfaced to the requester.
    """

    def __init__(
        self,
        message: str,
        group_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if group_id:
            details["group_id"] = group_id
        super().__init__(message, details)


class GenerationErrorKind(str, enum.Enum):
    """Classification of generation service failures."""

    TIMEOUT = "timeout"
    QUOTA = "quota"
    AUTH = "auth"
    UNKNOWN = "unknown"


class GenerationFailedError(ClassroomRagException):
    """Raised when the generation service fails for a reason other than cancellation."""

    def __init__(
        self,
        message: str,
        kind: GenerationErrorKind = GenerationErrorKind.UNKNOWN,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["kind"] = kind.value
        self.kind = kind
        super().__init__(message, details)


class GenerationInProgressError(ClassroomRagException):
    """Raised when a requester already has an answer generating in the group."""

    def __init__(self, group_id: str, requester_id: str, message_id: str) -> None:
        super().__init__(
            "A response is already being generated for this conversation",
            {"group_id": group_id, "requester_id": requester_id, "message_id": message_id},
        )


class InvalidMessageTransitionError(ClassroomRagException):
    """Raised when a chat message lifecycle transition is not allowed."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            f"Cannot move message from '{current}' to '{target}'",
            {"current": current, "target": target},
        )


class PersistenceError(ClassroomRagException):
    """Raised when a best-effort persistence write fails."""

    pass
