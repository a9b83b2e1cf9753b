"""FastAPI dependencies."""

from classroom_rag.api.deps.dependencies import (
    ServiceCache,
    get_chat_service,
    get_indexing_service,
    get_lifecycle_service,
    get_service_cache,
)

__all__ = [
    "ServiceCache",
    "get_chat_service",
    "get_indexing_service",
    "get_lifecycle_service",
    "get_service_cache",
]
