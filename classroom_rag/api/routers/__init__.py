"""API routers."""

from .chat_history import router as chat_history_router
from .chat_stream import router as chat_stream_router
from .documents import router as documents_router
from .health import router as health_router

__all__ = [
    "chat_history_router",
    "chat_stream_router",
    "documents_router",
    "health_router",
]
