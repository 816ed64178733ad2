"""
FastAPI dependency injection providers for TranscriptVault API.

The ``TranscriptService`` is built once during startup and stored on
``app.state``; routes receive it through ``Depends``.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from storage.service import TranscriptService


async def get_transcript_service(request: Request) -> TranscriptService:
    """Return the app-level ``TranscriptService``."""
    service = getattr(request.app.state, "transcript_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Transcript service is not configured")
    return service
