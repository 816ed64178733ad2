"""
Metadata Store adapters for TranscriptVault.

Structured per-version records in a queryable index. ``SqlMetadataStore``
persists them to the PostgreSQL ``transcript_metadata`` table via
SQLAlchemy's async session; ``InMemoryMetadataStore`` keeps them in a dict
keyed by ``(source_id, version)``. Both enforce uniqueness of
``(source_id, version)`` and implement the latest-version projection.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable, Iterable
from contextlib import asynccontextmanager
from typing import Any

import structlog
from sqlalchemy import delete, func, select, text, update
from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from storage.errors import DuplicateVersionError, MetadataStoreError, StoreErrorKind
from storage.filters import Pagination, SearchFilters
from tv_common.db.orm_models import SOURCE_VERSION_CONSTRAINT, TranscriptMetadataORM
from tv_common.metrics import observe_store_call
from tv_common.models import (
    ProcessingStatus,
    StatusChange,
    TranscriptFormat,
    TranscriptMetadata,
)
from tv_common.utils import format_iso_date, parse_iso_date

logger = structlog.get_logger(__name__)

_BLOB_KEY_CHUNK = 500

# PostgreSQL SQLSTATE codes worth distinguishing.
_UNAUTHORIZED_STATES = frozenset({"28000", "28P01", "42501"})
_QUOTA_STATES = frozenset({"53100", "53200", "54000"})
_UNAVAILABLE_STATES = frozenset({"53300", "57P01", "57P02", "57P03", "08000", "08003", "08006"})


def classify_db_error(exc: Exception) -> StoreErrorKind:
    """Map a SQLAlchemy exception onto a ``StoreErrorKind``."""
    if isinstance(exc, (PoolTimeoutError, DisconnectionError)):
        return StoreErrorKind.UNAVAILABLE
    if isinstance(exc, DBAPIError):
        sqlstate = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
        if sqlstate in _UNAUTHORIZED_STATES:
            return StoreErrorKind.UNAUTHORIZED
        if sqlstate in _QUOTA_STATES:
            return StoreErrorKind.QUOTA_EXCEEDED
        if sqlstate in _UNAVAILABLE_STATES or exc.connection_invalidated:
            return StoreErrorKind.UNAVAILABLE
        if isinstance(exc, (OperationalError, InterfaceError)):
            return StoreErrorKind.UNAVAILABLE
    return StoreErrorKind.UNKNOWN


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def orm_to_record(row: TranscriptMetadataORM) -> TranscriptMetadata:
    """Convert a ``transcript_metadata`` row to the domain record."""
    return TranscriptMetadata(
        source_id=row.source_id,
        version=row.version,
        title=row.title,
        date=format_iso_date(row.date),
        speakers=list(row.speakers or []),
        format=TranscriptFormat(row.format),
        tags=list(row.tags or []),
        processing_status=ProcessingStatus(row.processing_status),
        uploaded_at=row.uploaded_at,
        processing_completed_at=row.processing_completed_at,
        blob_key=row.blob_key,
        url=row.url,
        size=row.size,
    )


def record_to_orm(record: TranscriptMetadata) -> TranscriptMetadataORM:
    """Build a new ORM row from a domain record."""
    return TranscriptMetadataORM(
        source_id=record.source_id,
        version=record.version,
        title=record.title,
        date=parse_iso_date(record.date),
        speakers=list(record.speakers),
        format=record.format.value,
        tags=list(record.tags),
        processing_status=record.processing_status.value,
        uploaded_at=record.uploaded_at,
        processing_completed_at=record.processing_completed_at,
        blob_key=record.blob_key,
        url=record.url,
        size=record.size,
    )


class MetadataStore(ABC):
    """Interface of the metadata index."""

    @abstractmethod
    async def insert(self, record: TranscriptMetadata) -> TranscriptMetadata:
        """Persist a new record.

        Raises:
            DuplicateVersionError: ``(source_id, version)`` already exists.
        """

    @abstractmethod
    async def get(self, source_id: str, version: int | None = None) -> TranscriptMetadata | None:
        """Return one version, or the latest when *version* is ``None``."""

    @abstractmethod
    async def max_version(self, source_id: str) -> int | None:
        """Highest stored version for *source_id*, ``None`` when there is none."""

    @abstractmethod
    async def list_versions(self, source_id: str) -> list[TranscriptMetadata]:
        """All versions of *source_id*, newest first."""

    @abstractmethod
    async def update_status(
        self,
        source_id: str,
        version: int,
        change: StatusChange,
        *,
        expected: ProcessingStatus | None = None,
    ) -> TranscriptMetadata | None:
        """Apply *change* and return the updated record.

        When *expected* is given the update only applies if the stored
        status still equals it. Returns ``None`` when no row was updated.
        """

    @abstractmethod
    async def delete(self, source_id: str, version: int) -> bool:
        """Remove one version; ``True`` if a record was removed."""

    @abstractmethod
    async def delete_all(self, source_id: str) -> int:
        """Remove every version of *source_id*; returns the count removed."""

    @abstractmethod
    async def query(
        self,
        filters: SearchFilters,
        pagination: Pagination,
        *,
        latest_only: bool = True,
    ) -> tuple[list[TranscriptMetadata], int]:
        """Return one page of matching records and the total match count."""

    @abstractmethod
    async def existing_blob_keys(self, keys: Iterable[str]) -> set[str]:
        """Subset of *keys* referenced by some stored record."""

    @abstractmethod
    async def ping(self) -> bool:
        """Return ``True`` when the index is reachable."""


class SqlMetadataStore(MetadataStore):
    """Metadata store on the PostgreSQL ``transcript_metadata`` table.

    Parameters
    ----------
    session_factory:
        Callable returning a new ``AsyncSession``; one session is used per
        operation.
    """

    def __init__(self, session_factory: Callable[..., Any]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        session: AsyncSession = self._session_factory()
        try:
            with observe_store_call("metadata", operation):
                yield session
        except SQLAlchemyError as exc:
            await session.rollback()
            kind = classify_db_error(exc)
            logger.warning("metadata_store_failed", operation=operation, kind=kind.value, error=str(exc))
            raise MetadataStoreError(
                f"Metadata store {operation} failed: {exc}",
                kind=kind,
                operation=operation,
            ) from exc
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def insert(self, record: TranscriptMetadata) -> TranscriptMetadata:
        async with self._session("insert") as session:
            session.add(record_to_orm(record))
            try:
                await session.commit()
            except IntegrityError as exc:
                if SOURCE_VERSION_CONSTRAINT in str(exc.orig):
                    raise DuplicateVersionError(record.source_id, record.version) from exc
                raise
        logger.debug("metadata_inserted", source_id=record.source_id, version=record.version)
        return record

    async def get(self, source_id: str, version: int | None = None) -> TranscriptMetadata | None:
        stmt = select(TranscriptMetadataORM).where(TranscriptMetadataORM.source_id == source_id)
        if version is None:
            stmt = stmt.order_by(TranscriptMetadataORM.version.desc()).limit(1)
        else:
            stmt = stmt.where(TranscriptMetadataORM.version == version)
        async with self._session("get") as session:
            result = await session.execute(stmt)
            row = result.scalars().first()
            return orm_to_record(row) if row is not None else None

    async def max_version(self, source_id: str) -> int | None:
        stmt = select(func.max(TranscriptMetadataORM.version)).where(
            TranscriptMetadataORM.source_id == source_id,
        )
        async with self._session("max_version") as session:
            result = await session.execute(stmt)
            return result.scalar()

    async def list_versions(self, source_id: str) -> list[TranscriptMetadata]:
        stmt = (
            select(TranscriptMetadataORM)
            .where(TranscriptMetadataORM.source_id == source_id)
            .order_by(TranscriptMetadataORM.version.desc())
        )
        async with self._session("list_versions") as session:
            result = await session.execute(stmt)
            return [orm_to_record(row) for row in result.scalars().all()]

    async def update_status(
        self,
        source_id: str,
        version: int,
        change: StatusChange,
        *,
        expected: ProcessingStatus | None = None,
    ) -> TranscriptMetadata | None:
        stmt = (
            update(TranscriptMetadataORM)
            .where(
                TranscriptMetadataORM.source_id == source_id,
                TranscriptMetadataORM.version == version,
            )
            .values(
                processing_status=change.processing_status.value,
                processing_completed_at=change.processing_completed_at,
            )
            .returning(TranscriptMetadataORM)
        )
        if expected is not None:
            stmt = stmt.where(TranscriptMetadataORM.processing_status == expected.value)
        async with self._session("update_status") as session:
            result = await session.execute(stmt)
            row = result.scalars().first()
            updated = orm_to_record(row) if row is not None else None
            await session.commit()
            return updated

    async def delete(self, source_id: str, version: int) -> bool:
        stmt = delete(TranscriptMetadataORM).where(
            TranscriptMetadataORM.source_id == source_id,
            TranscriptMetadataORM.version == version,
        )
        async with self._session("delete") as session:
            result = await session.execute(stmt)
            await session.commit()
            return (result.rowcount or 0) > 0

    async def delete_all(self, source_id: str) -> int:
        stmt = delete(TranscriptMetadataORM).where(TranscriptMetadataORM.source_id == source_id)
        async with self._session("delete_all") as session:
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount or 0

    def build_query(
        self,
        filters: SearchFilters,
        pagination: Pagination,
        *,
        latest_only: bool = True,
    ) -> tuple[Any, Any]:
        """Build the page and count statements for :meth:`query`."""
        if latest_only:
            rank = (
                func.row_number()
                .over(
                    partition_by=TranscriptMetadataORM.source_id,
                    order_by=TranscriptMetadataORM.version.desc(),
                )
                .label("version_rank")
            )
            ranked = select(TranscriptMetadataORM, rank).subquery("ranked")
            entity = aliased(TranscriptMetadataORM, ranked)
            criteria = [ranked.c.version_rank == 1]
        else:
            entity = TranscriptMetadataORM
            criteria = []

        if filters.title is not None:
            criteria.append(entity.title.ilike(f"%{_escape_like(filters.title)}%", escape="\\"))
        if filters.speaker is not None:
            criteria.append(entity.speakers.contains([filters.speaker]))
        if filters.tag is not None:
            criteria.append(entity.tags.contains([filters.tag]))
        if filters.date_from is not None:
            criteria.append(entity.date >= parse_iso_date(filters.date_from))
        if filters.date_to is not None:
            criteria.append(entity.date <= parse_iso_date(filters.date_to))
        if filters.status is not None:
            criteria.append(entity.processing_status == filters.status.value)

        page_stmt = (
            select(entity)
            .where(*criteria)
            .order_by(entity.uploaded_at.desc(), entity.source_id, entity.version.desc())
            .limit(pagination.limit)
            .offset(pagination.offset)
        )
        count_stmt = select(func.count()).select_from(entity).where(*criteria)
        return page_stmt, count_stmt

    async def query(
        self,
        filters: SearchFilters,
        pagination: Pagination,
        *,
        latest_only: bool = True,
    ) -> tuple[list[TranscriptMetadata], int]:
        page_stmt, count_stmt = self.build_query(filters, pagination, latest_only=latest_only)
        async with self._session("query") as session:
            total = (await session.execute(count_stmt)).scalar() or 0
            result = await session.execute(page_stmt)
            return [orm_to_record(row) for row in result.scalars().all()], total

    async def existing_blob_keys(self, keys: Iterable[str]) -> set[str]:
        pending = list(dict.fromkeys(keys))
        found: set[str] = set()
        if not pending:
            return found
        async with self._session("existing_blob_keys") as session:
            for start in range(0, len(pending), _BLOB_KEY_CHUNK):
                chunk = pending[start:start + _BLOB_KEY_CHUNK]
                result = await session.execute(
                    select(TranscriptMetadataORM.blob_key).where(
                        TranscriptMetadataORM.blob_key.in_(chunk),
                    ),
                )
                found.update(result.scalars().all())
        return found

    async def ping(self) -> bool:
        try:
            async with self._session("ping") as session:
                await session.execute(text("SELECT 1"))
            return True
        except MetadataStoreError:
            return False


class InMemoryMetadataStore(MetadataStore):
    """Dictionary-backed metadata store with the SQL adapter's semantics."""

    def __init__(self) -> None:
        self._records: dict[tuple[str, int], TranscriptMetadata] = {}

    def __len__(self) -> int:
        return len(self._records)

    async def insert(self, record: TranscriptMetadata) -> TranscriptMetadata:
        if (record.source_id, record.version) in self._records:
            raise DuplicateVersionError(record.source_id, record.version)
        if any(existing.blob_key == record.blob_key for existing in self._records.values()):
            raise MetadataStoreError(
                f"Blob key {record.blob_key!r} is already referenced",
                operation="insert",
            )
        self._records[(record.source_id, record.version)] = record
        return record

    def _versions(self, source_id: str) -> list[TranscriptMetadata]:
        return sorted(
            (r for (sid, _), r in self._records.items() if sid == source_id),
            key=lambda r: r.version,
            reverse=True,
        )

    async def get(self, source_id: str, version: int | None = None) -> TranscriptMetadata | None:
        if version is not None:
            return self._records.get((source_id, version))
        versions = self._versions(source_id)
        return versions[0] if versions else None

    async def max_version(self, source_id: str) -> int | None:
        versions = self._versions(source_id)
        return versions[0].version if versions else None

    async def list_versions(self, source_id: str) -> list[TranscriptMetadata]:
        return self._versions(source_id)

    async def update_status(
        self,
        source_id: str,
        version: int,
        change: StatusChange,
        *,
        expected: ProcessingStatus | None = None,
    ) -> TranscriptMetadata | None:
        current = self._records.get((source_id, version))
        if current is None:
            return None
        if expected is not None and current.processing_status != expected:
            return None
        updated = current.model_copy(
            update={
                "processing_status": change.processing_status,
                "processing_completed_at": change.processing_completed_at,
            },
        )
        self._records[(source_id, version)] = updated
        return updated

    async def delete(self, source_id: str, version: int) -> bool:
        return self._records.pop((source_id, version), None) is not None

    async def delete_all(self, source_id: str) -> int:
        doomed = [key for key in self._records if key[0] == source_id]
        for key in doomed:
            del self._records[key]
        return len(doomed)

    async def query(
        self,
        filters: SearchFilters,
        pagination: Pagination,
        *,
        latest_only: bool = True,
    ) -> tuple[list[TranscriptMetadata], int]:
        if latest_only:
            latest: dict[str, TranscriptMetadata] = {}
            for record in self._records.values():
                held = latest.get(record.source_id)
                if held is None or record.version > held.version:
                    latest[record.source_id] = record
            candidates = list(latest.values())
        else:
            candidates = list(self._records.values())

        matches = [r for r in candidates if filters.matches(r)]
        matches.sort(key=lambda r: (r.source_id, -r.version))
        matches.sort(key=lambda r: r.uploaded_at, reverse=True)
        window = matches[pagination.offset:pagination.offset + pagination.limit]
        return window, len(matches)

    async def existing_blob_keys(self, keys: Iterable[str]) -> set[str]:
        referenced = {r.blob_key for r in self._records.values()}
        return {key for key in keys if key in referenced}

    async def ping(self) -> bool:
        return True
