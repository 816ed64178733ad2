"""
Exception handlers for TranscriptVault API.

Maps storage-core errors onto HTTP status codes and a uniform
``{"error", "details"}`` body.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storage.errors import (
    NotFoundError,
    StatusTransitionError,
    StoreError,
    StoreErrorKind,
    TranscriptStoreError,
    ValidationError,
    VersionConflictError,
)

logger = structlog.get_logger(__name__)

_STATUS_BY_KIND: dict[StoreErrorKind, int] = {
    StoreErrorKind.NOT_FOUND: 404,
    StoreErrorKind.UNAUTHORIZED: 502,
    StoreErrorKind.QUOTA_EXCEEDED: 507,
    StoreErrorKind.UNAVAILABLE: 503,
    StoreErrorKind.UNKNOWN: 500,
}


def status_code_for(exc: TranscriptStoreError) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, (VersionConflictError, StatusTransitionError)):
        return 409
    if isinstance(exc, StoreError):
        return _STATUS_BY_KIND.get(exc.kind, 500)
    return 500


async def transcript_error_handler(request: Request, exc: TranscriptStoreError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(
            "request_failed",
            path=request.url.path,
            status=status_code,
            error_type=type(exc).__name__,
            error=str(exc),
        )
    return JSONResponse(
        status_code=status_code,
        content={"error": str(exc), "details": exc.details()},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies and parameters like core validation errors."""
    violations = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part not in ("body", "query", "path")),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"error": "Request validation failed", "details": {"violations": violations}},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TranscriptStoreError, transcript_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
