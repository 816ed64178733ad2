"""
Transcript API schemas for TranscriptVault.

Pydantic request/response models for upload, retrieval, version
history, listing/search, status updates and deletes.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from tv_common.models import TranscriptMetadata


class UploadRequest(BaseModel):
    """Body of ``POST /transcripts``.

    ``metadata`` is passed through untouched; the storage core validates
    it and reports every violation at once.
    """

    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class UploadResponse(BaseModel):
    url: str
    blob_key: str
    metadata: TranscriptMetadata


class TranscriptResponse(BaseModel):
    metadata: TranscriptMetadata
    content: str


class TranscriptListResponse(BaseModel):
    items: list[TranscriptMetadata]
    total: int
    limit: int | None = None
    offset: int | None = None


class VersionListResponse(BaseModel):
    source_id: str
    versions: list[TranscriptMetadata]
    total: int


class StatusUpdateRequest(BaseModel):
    status: str


class DeleteAllResponse(BaseModel):
    source_id: str
    deleted_versions: int


class ErrorResponse(BaseModel):
    error: str
    details: dict[str, Any] = Field(default_factory=dict)
