"""
Health check API router for TranscriptVault.

Reports reachability of the metadata database and the object store.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from pydantic import BaseModel

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    services: dict[str, str]


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    service = getattr(request.app.state, "transcript_service", None)
    if service is None:
        return HealthResponse(
            status="degraded",
            services={"database": "not_configured", "object_store": "not_configured"},
        )

    reachable = await service.health()
    services = {
        "database": "healthy" if reachable["metadata"] else "unhealthy",
        "object_store": "healthy" if reachable["content"] else "unhealthy",
    }
    overall = "healthy" if all(v == "healthy" for v in services.values()) else "degraded"
    return HealthResponse(status=overall, services=services)
