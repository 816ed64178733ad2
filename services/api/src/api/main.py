"""
FastAPI application entry point for TranscriptVault API.

Creates and configures the FastAPI app, registers routers, middleware
and exception handlers, and wires the storage core during startup.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
import uvicorn
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from api.errors import register_exception_handlers
from api.middleware.logging import LoggingMiddleware
from api.routers import health, transcripts
from storage.service import build_s3_client, build_transcript_service
from tv_common.config import get_settings
from tv_common.db.connection import build_engine, build_session_factory
from tv_common.logging import configure_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    # ── Startup ──
    settings = get_settings()
    configure_logging(settings.log_level, json_output=settings.log_json)

    engine = build_engine(settings)
    app.state.transcript_service = build_transcript_service(
        settings,
        build_session_factory(engine),
        build_s3_client(settings),
    )
    logger.info("api_started", bucket=settings.s3_bucket, prefix=settings.storage_path_prefix)

    yield

    # ── Shutdown ──
    app.state.transcript_service = None
    await engine.dispose()
    logger.info("api_stopped")


def create_app() -> FastAPI:
    """Build and return the fully-configured FastAPI application."""
    app = FastAPI(
        title="TranscriptVault API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # ── Routers ──
    app.include_router(transcripts.router, prefix="/api/v1")
    app.include_router(health.router)

    # Prometheus metrics endpoint
    app.mount("/metrics", make_asgi_app())

    register_exception_handlers(app)
    app.add_middleware(LoggingMiddleware)

    return app


app = create_app()


def run() -> None:
    """Serve the API with uvicorn."""
    settings = get_settings()
    uvicorn.run("api.main:app", host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    run()
