"""
FastAPI application entry point.

Initializes FastAPI app, registers routers, adds middleware, and configures lifespan.

Dependencies: fastapi, classroom_rag.api, classroom_rag.observability, classroom_rag.configs
System role: Application initialization and configuration
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from classroom_rag import __version__
from classroom_rag.api import api_router
from classroom_rag.api.deps import get_service_cache
from classroom_rag.api.routers import chat_stream_router
from classroom_rag.boundary.db.connection import create_tables
from classroom_rag.configs import get_settings
from classroom_rag.observability import configure_logging
from classroom_rag.observability.middleware import RequestLoggingMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Configures logging, ensures tables exist, and recovers messages left
    generating by a previous process.
    """
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("Application startup: logging configured")

    try:
        await create_tables()
        recovered = await get_service_cache().lifecycle.recover_stale()
        logger.info("Application startup complete", extra={"recovered_messages": recovered})
    except Exception as e:
        logger.exception("Failed to initialize application resources", extra={"error": str(e)})
        raise

    yield

    logger.info("Application shutdown")


def create_app(use_lifespan: bool = True) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        use_lifespan: Run startup hooks (disabled in route tests)

    Returns:
        FastAPI: Configured application instance
    """
    settings = get_settings()

    app = FastAPI(
        title="Classroom RAG API",
        description="Retrieval-augmented, cancellable streaming Q&A over group documents",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan if use_lifespan else None,
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api/v1")
    app.include_router(chat_stream_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "classroom_rag.main:app",
        host="localhost",
        port=8082,
        reload=True,
    )
