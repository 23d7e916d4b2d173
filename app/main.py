"""
Main FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.logging import setup_logging, get_logger
from app.core.error_handler import setup_error_monitoring
from app.api.v1 import api_router
from app.db.supabase import SupabaseClient

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(
        f"Search: threshold={settings.search_semantic_threshold}, "
        f"overfetch={settings.search_overfetch_multiplier}x, max_limit={settings.search_max_limit}"
    )

    yield

    logger.info("Shutting down application")
    await SupabaseClient.close()
    logger.info("Application shutdown complete")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Chat backend: hybrid message search, batch message fetch and unified search",
    docs_url="/docs" if settings.enable_api_docs else None,
    redoc_url="/redoc" if settings.enable_api_docs else None,
    openapi_url=f"{settings.api_prefix}/openapi.json" if settings.enable_api_docs else None,
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Messages",
            "description": "Message search and batch fetch",
        },
        {
            "name": "Search",
            "description": "Unified search across chats, people and messages",
        },
        {
            "name": "Health",
            "description": "Health check and monitoring endpoints",
        },
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=settings.cors_credentials,
    allow_methods=settings.cors_methods_list,
    allow_headers=[settings.cors_headers],
    expose_headers=["X-Next-Cursor", "X-Request-ID"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)

setup_error_monitoring(app)


@app.get("/health", tags=["Health"])
async def health_check() -> JSONResponse:
    """
    Health check endpoint for monitoring.
    """
    return JSONResponse(
        content={
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
        }
    )


@app.get("/", tags=["Root"])
async def root() -> JSONResponse:
    """
    Root endpoint with API information.
    """
    return JSONResponse(
        content={
            "service": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs" if settings.enable_api_docs else None,
        }
    )


app.include_router(api_router, prefix=settings.api_prefix)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.enable_reload and settings.is_development,
        log_level=settings.log_level.lower(),
    )
