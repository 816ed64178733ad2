"""
Consistency Coordinator for TranscriptVault.

Keeps content (object store) and metadata (index) in agreement without a
shared transaction. Uploads run as a saga: write the blob, then the
metadata record, and delete the blob again if the metadata write fails.
Deletes run in the opposite order: the blob goes first, so a failure
leaves metadata pointing at a blob that may or may not exist and the
delete can simply be retried.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from storage.content_store import CONTENT_TYPES, ContentStore
from storage.errors import (
    ContentStoreError,
    DuplicateVersionError,
    FieldViolation,
    MetadataStoreError,
    NotFoundError,
    StatusTransitionError,
    ValidationError,
    VersionConflictError,
)
from storage.keys import KeyGenerator
from storage.metadata_store import MetadataStore
from storage.status import allowed_next_statuses, ensure_transition
from storage.validation import validate_upload
from storage.versioning import VersionAllocator
from tv_common.metrics import (
    blob_compensations_total,
    transcript_deletions_total,
    transcript_uploads_total,
)
from tv_common.models import (
    ProcessingStatus,
    StatusChange,
    TranscriptContent,
    TranscriptMetadata,
    UploadMetadata,
    UploadResult,
)
from tv_common.utils import generate_source_id, utc_now

logger = structlog.get_logger(__name__)


def check_source_id(source_id: object) -> str:
    """Reject blank or non-string source ids before any store access."""
    if not isinstance(source_id, str) or not source_id.strip():
        raise ValidationError([FieldViolation("sourceId", "must be a non-empty string")])
    return source_id


def _check_version(version: object) -> int:
    if isinstance(version, bool) or not isinstance(version, int) or version < 1:
        raise ValidationError([FieldViolation("version", "must be a positive integer")])
    return version


def _coerce_status(status: ProcessingStatus | str) -> ProcessingStatus:
    try:
        return ProcessingStatus(status)
    except ValueError:
        allowed = ", ".join(s.value for s in ProcessingStatus)
        raise ValidationError(
            [FieldViolation("status", f"{status!r} must be one of: {allowed}")],
        ) from None


class ConsistencyCoordinator:
    """Orchestrates multi-store writes and deletes for transcript versions.

    Parameters
    ----------
    content_store:
        Blob store for transcript content.
    metadata_store:
        Index holding one record per ``(source_id, version)``.
    key_generator:
        Produces a fresh blob key for every upload attempt.
    """

    def __init__(
        self,
        content_store: ContentStore,
        metadata_store: MetadataStore,
        key_generator: KeyGenerator,
    ) -> None:
        self._content = content_store
        self._metadata = metadata_store
        self._keys = key_generator
        self._allocator = VersionAllocator(metadata_store)

    # ── upload ──

    async def upload(
        self,
        content: str | bytes,
        metadata: UploadMetadata | Mapping[str, Any],
    ) -> UploadResult:
        """Store a new version of a transcript.

        Raises:
            ValidationError: Bad content or metadata; nothing was written.
            ContentStoreError: The blob write failed; nothing was written.
            VersionConflictError: A concurrent upload took the version.
            MetadataStoreError: The metadata write failed.
        """
        try:
            data, upload_meta = validate_upload(content, metadata)
        except ValidationError:
            transcript_uploads_total.labels(outcome="invalid").inc()
            raise

        source_id = upload_meta.source_id or generate_source_id()
        version = await self._allocator.next_version(source_id)
        key = self._keys.generate(source_id, version)
        log = logger.bind(source_id=source_id, version=version, blob_key=key)

        try:
            url = await self._content.put(key, data, CONTENT_TYPES[upload_meta.format])
        except ContentStoreError as exc:
            transcript_uploads_total.labels(outcome="content_error").inc()
            log.error("content_write_failed", kind=exc.kind.value, error=str(exc))
            raise

        record = TranscriptMetadata(
            source_id=source_id,
            version=version,
            title=upload_meta.title,
            date=upload_meta.date,
            speakers=list(upload_meta.speakers),
            format=upload_meta.format,
            tags=list(upload_meta.tags or []),
            processing_status=ProcessingStatus.PENDING,
            uploaded_at=utc_now(),
            blob_key=key,
            url=url,
            size=len(data),
        )

        try:
            await self._metadata.insert(record)
        except DuplicateVersionError as exc:
            transcript_uploads_total.labels(outcome="conflict").inc()
            log.warning("version_conflict")
            await self._compensate(key)
            raise VersionConflictError(source_id, version) from exc
        except MetadataStoreError as exc:
            transcript_uploads_total.labels(outcome="metadata_error").inc()
            log.error("metadata_write_failed", kind=exc.kind.value, error=str(exc))
            await self._compensate(key)
            raise

        transcript_uploads_total.labels(outcome="success").inc()
        log.info("transcript_uploaded", size=record.size, format=record.format.value)
        return UploadResult(url=url, blob_key=key, metadata=record)

    async def _compensate(self, key: str) -> None:
        """Best-effort removal of a blob whose metadata never committed."""
        try:
            await self._content.delete(key)
        except Exception:  # noqa: BLE001 - never masks the error that triggered compensation
            blob_compensations_total.labels(outcome="failed").inc()
            logger.exception("blob_compensation_failed", blob_key=key)
            return
        blob_compensations_total.labels(outcome="deleted").inc()
        logger.info("blob_compensated", blob_key=key)

    # ── reads ──

    async def get(self, source_id: str, version: int | None = None) -> TranscriptContent:
        """Return content and metadata for one version (latest by default)."""
        check_source_id(source_id)
        if version is not None:
            _check_version(version)
        record = await self._metadata.get(source_id, version)
        if record is None:
            raise NotFoundError(source_id, version)
        data = await self._content.get(record.blob_key)
        return TranscriptContent(content=data, metadata=record)

    # ── status ──

    async def update_status(
        self,
        source_id: str,
        version: int,
        status: ProcessingStatus | str,
    ) -> TranscriptMetadata:
        """Move one version along the processing lifecycle.

        Raises:
            NotFoundError: No such version.
            StatusTransitionError: The move is not allowed from the stored status.
        """
        check_source_id(source_id)
        _check_version(version)
        new_status = _coerce_status(status)

        current = await self._metadata.get(source_id, version)
        if current is None:
            raise NotFoundError(source_id, version)
        ensure_transition(current.processing_status, new_status)

        completed_at = current.processing_completed_at
        if new_status is ProcessingStatus.PROCESSED:
            completed_at = utc_now()
        change = StatusChange(processing_status=new_status, processing_completed_at=completed_at)

        updated = await self._metadata.update_status(
            source_id,
            version,
            change,
            expected=current.processing_status,
        )
        if updated is None:
            # Deleted or moved by someone else between the read and the write.
            fresh = await self._metadata.get(source_id, version)
            if fresh is None:
                raise NotFoundError(source_id, version)
            raise StatusTransitionError(
                current=fresh.processing_status.value,
                attempted=new_status.value,
                allowed=[s.value for s in allowed_next_statuses(fresh.processing_status)],
            )

        logger.info(
            "processing_status_updated",
            source_id=source_id,
            version=version,
            previous=current.processing_status.value,
            status=new_status.value,
        )
        return updated

    # ── deletes ──

    async def _delete_record(self, record: TranscriptMetadata) -> None:
        await self._content.delete(record.blob_key)
        await self._metadata.delete(record.source_id, record.version)

    async def delete_version(self, source_id: str, version: int) -> None:
        """Delete one version: blob first, then its metadata record."""
        check_source_id(source_id)
        _check_version(version)
        record = await self._metadata.get(source_id, version)
        if record is None:
            raise NotFoundError(source_id, version)
        await self._delete_record(record)
        transcript_deletions_total.labels(scope="version").inc()
        logger.info("transcript_version_deleted", source_id=source_id, version=version)

    async def delete_all(self, source_id: str) -> int:
        """Delete every version of *source_id*; returns how many were removed.

        Versions are removed one at a time, newest first. A failure stops
        the loop with the remaining versions intact, and calling again
        resumes where it stopped.
        """
        check_source_id(source_id)
        records = await self._metadata.list_versions(source_id)
        for record in records:
            await self._delete_record(record)
            transcript_deletions_total.labels(scope="all").inc()
        logger.info("transcript_deleted", source_id=source_id, versions=len(records))
        return len(records)

    # ── health ──

    async def check_stores(self) -> dict[str, bool]:
        """Reachability of both stores."""
        return {
            "metadata": await self._metadata.ping(),
            "content": await self._content.ping(),
        }
