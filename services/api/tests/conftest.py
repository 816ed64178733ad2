"""Shared fixtures for API tests."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.dependencies import get_transcript_service
from api.errors import register_exception_handlers
from api.middleware.logging import LoggingMiddleware
from api.routers import health, transcripts
from storage.service import TranscriptService, build_in_memory_service


# ─── Core fixtures ────────────────────────────────────────────


@pytest.fixture()
def service() -> TranscriptService:
    return build_in_memory_service(default_page_limit=10)


def _build_app(service: TranscriptService | None) -> FastAPI:
    """Build a minimal FastAPI app over an in-memory service."""
    app = FastAPI()

    if service is not None:
        app.dependency_overrides[get_transcript_service] = lambda: service
    app.state.transcript_service = service

    app.include_router(transcripts.router, prefix="/api/v1")
    app.include_router(health.router)
    register_exception_handlers(app)
    app.add_middleware(LoggingMiddleware)
    return app


@pytest.fixture()
def app(service: TranscriptService) -> FastAPI:
    return _build_app(service)


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def unconfigured_client() -> TestClient:
    return TestClient(_build_app(None))


@pytest.fixture()
def metadata() -> dict:
    return {
        "sourceId": "abc",
        "title": "Quarterly review",
        "date": "2024-01-15",
        "speakers": ["A", "B"],
        "format": "text",
    }
