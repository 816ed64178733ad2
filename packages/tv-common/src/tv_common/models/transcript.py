"""
Transcript data models for TranscriptVault.

Defines the Pydantic models for upload input (``UploadMetadata``), the
stored per-version record (``TranscriptMetadata``), status changes, and
the composed results returned to callers.
"""

from __future__ import annotations

import enum
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tv_common.utils import is_valid_iso_date


class TranscriptFormat(str, enum.Enum):
    """Serialization format of the stored transcript content."""

    JSON = "json"
    TEXT = "text"
    SRT = "srt"
    VTT = "vtt"


class ProcessingStatus(str, enum.Enum):
    """Downstream processing state of a transcript version."""

    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"


class UploadMetadata(BaseModel):
    """Caller-supplied metadata for a new transcript version.

    Accepts both snake_case and camelCase (``sourceId``) keys; unknown keys
    are ignored.

    Attributes:
        source_id: Logical document id; generated when omitted.
        title: Human-readable title.
        date: Transcript date in ``YYYY-MM-DD`` form.
        speakers: Ordered speaker names (may be empty).
        format: Content serialization format.
        tags: Optional free-form tags, duplicates dropped in first-seen order.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    source_id: str | None = Field(default=None, alias="sourceId", max_length=255)
    title: str = Field(..., description="Human-readable title.")
    date: str = Field(..., description="Transcript date (YYYY-MM-DD).")
    speakers: list[str] = Field(..., description="Ordered speaker names.")
    format: TranscriptFormat = Field(..., description="Content serialization format.")
    tags: list[str] | None = Field(default=None, description="Optional tags.")

    @field_validator("source_id")
    @classmethod
    def _source_id_not_blank(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            raise ValueError("sourceId must not be blank")
        return value

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title must not be blank")
        return value

    @field_validator("date")
    @classmethod
    def _date_is_canonical(cls, value: str) -> str:
        if not is_valid_iso_date(value):
            raise ValueError("date must be a valid date in YYYY-MM-DD format")
        return value

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return list(dict.fromkeys(value))


class TranscriptMetadata(BaseModel):
    """One stored transcript version: the metadata row for ``(source_id, version)``.

    Attributes:
        source_id: Logical document id, stable across versions.
        version: Positive version number, unique per source id.
        title: Human-readable title.
        date: Transcript date (``YYYY-MM-DD``).
        speakers: Ordered speaker names.
        format: Content serialization format.
        tags: Tags attached at upload.
        processing_status: Downstream processing state.
        uploaded_at: Creation timestamp (UTC), immutable.
        processing_completed_at: Set when the version reaches ``processed``.
        blob_key: Content address in the object store.
        url: Retrieval URL for the content.
        size: Content length in bytes.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)

    source_id: str = Field(..., min_length=1, max_length=255)
    version: int = Field(..., ge=1)
    title: str
    date: str
    speakers: list[str] = Field(default_factory=list)
    format: TranscriptFormat
    tags: list[str] = Field(default_factory=list)
    processing_status: ProcessingStatus = ProcessingStatus.PENDING
    uploaded_at: datetime
    processing_completed_at: datetime | None = None
    blob_key: str
    url: str
    size: int = Field(..., ge=0)


class StatusChange(BaseModel):
    """The only mutation a stored version accepts after creation."""

    model_config = ConfigDict(frozen=True)

    processing_status: ProcessingStatus
    processing_completed_at: datetime | None = None


class UploadResult(BaseModel):
    """Outcome of a committed upload."""

    url: str
    blob_key: str
    metadata: TranscriptMetadata


class TranscriptContent(BaseModel):
    """Content and metadata of one transcript version."""

    content: bytes
    metadata: TranscriptMetadata

    @property
    def text(self) -> str:
        """Content decoded as UTF-8."""
        return self.content.decode("utf-8")


class TranscriptPage(BaseModel):
    """A page of records plus the total number of matches."""

    items: list[TranscriptMetadata] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)
