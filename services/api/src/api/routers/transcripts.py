"""
Transcript API router for TranscriptVault.

Upload, retrieval, version history, listing, search, processing-status
updates and deletes. Every route delegates to ``TranscriptService``;
errors are translated by the handlers in ``api.errors``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response

from api.dependencies import get_transcript_service
from api.schemas.transcript_schemas import (
    DeleteAllResponse,
    ErrorResponse,
    StatusUpdateRequest,
    TranscriptListResponse,
    TranscriptResponse,
    UploadRequest,
    UploadResponse,
    VersionListResponse,
)
from storage.filters import SearchQuery
from storage.service import TranscriptService
from tv_common.models import TranscriptMetadata

_ERRORS = {code: {"model": ErrorResponse} for code in (400, 404, 409, 500, 502, 503, 507)}

router = APIRouter(prefix="/transcripts", tags=["transcripts"], responses=_ERRORS)


@router.post("", status_code=201, response_model=UploadResponse)
async def upload_transcript(
    body: UploadRequest,
    service: TranscriptService = Depends(get_transcript_service),
) -> UploadResponse:
    result = await service.upload(body.content, body.metadata)
    return UploadResponse(url=result.url, blob_key=result.blob_key, metadata=result.metadata)


@router.get("", response_model=TranscriptListResponse)
async def list_transcripts(
    limit: int | None = Query(default=None),
    offset: int | None = Query(default=None),
    service: TranscriptService = Depends(get_transcript_service),
) -> TranscriptListResponse:
    page = await service.list(limit, offset)
    return TranscriptListResponse(items=page.items, total=page.total, limit=limit, offset=offset)


@router.get("/search", response_model=TranscriptListResponse)
async def search_transcripts(
    title: str | None = Query(default=None),
    speaker: str | None = Query(default=None),
    tag: str | None = Query(default=None),
    date_from: str | None = Query(default=None, alias="dateFrom"),
    date_to: str | None = Query(default=None, alias="dateTo"),
    status: str | None = Query(default=None),
    limit: int | None = Query(default=None),
    offset: int | None = Query(default=None),
    service: TranscriptService = Depends(get_transcript_service),
) -> TranscriptListResponse:
    query = SearchQuery(
        title=title,
        speaker=speaker,
        tag=tag,
        date_from=date_from,
        date_to=date_to,
        status=status,
        limit=limit,
        offset=offset,
    )
    page = await service.search(query)
    return TranscriptListResponse(items=page.items, total=page.total, limit=limit, offset=offset)


@router.get("/{source_id}", response_model=TranscriptResponse)
async def get_transcript(
    source_id: str,
    version: int | None = Query(default=None),
    service: TranscriptService = Depends(get_transcript_service),
) -> TranscriptResponse:
    result = await service.get(source_id, version)
    return TranscriptResponse(
        metadata=result.metadata,
        content=result.content.decode("utf-8", errors="replace"),
    )


@router.get("/{source_id}/versions", response_model=VersionListResponse)
async def list_transcript_versions(
    source_id: str,
    service: TranscriptService = Depends(get_transcript_service),
) -> VersionListResponse:
    versions = await service.list_versions(source_id)
    return VersionListResponse(source_id=source_id, versions=versions, total=len(versions))


@router.patch("/{source_id}/versions/{version}", response_model=TranscriptMetadata)
async def update_processing_status(
    source_id: str,
    version: int,
    body: StatusUpdateRequest,
    service: TranscriptService = Depends(get_transcript_service),
) -> TranscriptMetadata:
    return await service.update_status(source_id, version, body.status)


@router.delete("/{source_id}/versions/{version}", status_code=204)
async def delete_transcript_version(
    source_id: str,
    version: int,
    service: TranscriptService = Depends(get_transcript_service),
) -> Response:
    await service.delete_version(source_id, version)
    return Response(status_code=204)


@router.delete("/{source_id}", response_model=DeleteAllResponse)
async def delete_transcript(
    source_id: str,
    service: TranscriptService = Depends(get_transcript_service),
) -> DeleteAllResponse:
    deleted = await service.delete_all(source_id)
    return DeleteAllResponse(source_id=source_id, deleted_versions=deleted)
