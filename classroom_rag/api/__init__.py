"""
API routes module.

FastAPI routers for all HTTP endpoints. The WebSocket router is mounted
separately without the /api/v1 prefix.
"""

from fastapi import APIRouter

from .routers import chat_history_router, documents_router, health_router

api_router = APIRouter()

api_router.include_router(health_router)
api_router.include_router(chat_history_router)
api_router.include_router(documents_router)

__all__ = ["api_router"]
