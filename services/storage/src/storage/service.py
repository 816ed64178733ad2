"""
TranscriptService facade and composition helpers.

``TranscriptService`` is the single entry point collaborators use: it
forwards writes to the Consistency Coordinator, reads to the Query
Engine and repairs to the Orphan Sweeper. The ``build_*`` helpers wire
concrete adapters; nothing is kept in module-level state.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import timedelta
from typing import Any

import boto3

from storage.content_store import ContentStore, InMemoryContentStore, S3ContentStore
from storage.coordinator import ConsistencyCoordinator
from storage.filters import SearchQuery
from storage.keys import KeyGenerator
from storage.metadata_store import InMemoryMetadataStore, MetadataStore, SqlMetadataStore
from storage.query import QueryEngine
from storage.reconcile import OrphanSweeper, SweepReport
from tv_common.config import Settings
from tv_common.models import (
    ProcessingStatus,
    TranscriptContent,
    TranscriptMetadata,
    TranscriptPage,
    UploadMetadata,
    UploadResult,
)


class TranscriptService:
    """Versioned transcript storage operations."""

    def __init__(
        self,
        coordinator: ConsistencyCoordinator,
        query_engine: QueryEngine,
        sweeper: OrphanSweeper,
    ) -> None:
        self._coordinator = coordinator
        self._queries = query_engine
        self._sweeper = sweeper

    async def upload(
        self,
        content: str | bytes,
        metadata: UploadMetadata | Mapping[str, Any],
    ) -> UploadResult:
        return await self._coordinator.upload(content, metadata)

    async def get(self, source_id: str, version: int | None = None) -> TranscriptContent:
        return await self._coordinator.get(source_id, version)

    async def update_status(
        self,
        source_id: str,
        version: int,
        status: ProcessingStatus | str,
    ) -> TranscriptMetadata:
        return await self._coordinator.update_status(source_id, version, status)

    async def list_versions(self, source_id: str) -> list[TranscriptMetadata]:
        return await self._queries.list_versions(source_id)

    async def list(self, limit: int | None = None, offset: int | None = None) -> TranscriptPage:
        return await self._queries.list(limit, offset)

    async def search(self, query: SearchQuery | Mapping[str, Any] | None = None) -> TranscriptPage:
        return await self._queries.search(query)

    async def delete_version(self, source_id: str, version: int) -> None:
        await self._coordinator.delete_version(source_id, version)

    async def delete_all(self, source_id: str) -> int:
        return await self._coordinator.delete_all(source_id)

    async def sweep_orphans(
        self,
        older_than: timedelta | None = None,
        *,
        dry_run: bool = False,
    ) -> SweepReport:
        return await self._sweeper.sweep(older_than, dry_run=dry_run)

    async def health(self) -> dict[str, bool]:
        return await self._coordinator.check_stores()


def compose_service(
    content_store: ContentStore,
    metadata_store: MetadataStore,
    *,
    path_prefix: str = "transcripts",
    default_page_limit: int = 10,
    orphan_grace: timedelta = timedelta(hours=1),
) -> TranscriptService:
    """Assemble a ``TranscriptService`` around two store adapters."""
    keys = KeyGenerator(path_prefix)
    return TranscriptService(
        coordinator=ConsistencyCoordinator(content_store, metadata_store, keys),
        query_engine=QueryEngine(metadata_store, default_limit=default_page_limit),
        sweeper=OrphanSweeper(
            content_store,
            metadata_store,
            keys.prefix,
            grace=orphan_grace,
        ),
    )


def build_s3_client(settings: Settings) -> Any:
    """Create a boto3 S3 client for the configured region and endpoint."""
    return boto3.client(
        "s3",
        region_name=settings.s3_region,
        endpoint_url=settings.s3_endpoint_url,
    )


def build_transcript_service(
    settings: Settings,
    session_factory: Callable[..., Any],
    s3_client: Any,
) -> TranscriptService:
    """Wire the PostgreSQL and S3 adapters from *settings*."""
    content_store = S3ContentStore(
        s3_client,
        settings.s3_bucket,
        public_base_url=settings.s3_public_base_url,
        cache_control=settings.blob_cache_control,
    )
    return compose_service(
        content_store,
        SqlMetadataStore(session_factory),
        path_prefix=settings.storage_path_prefix,
        default_page_limit=settings.default_page_limit,
        orphan_grace=timedelta(seconds=settings.orphan_grace_seconds),
    )


def build_in_memory_service(
    *,
    path_prefix: str = "transcripts",
    default_page_limit: int = 10,
) -> TranscriptService:
    """A service over in-memory stores, for local development."""
    return compose_service(
        InMemoryContentStore(),
        InMemoryMetadataStore(),
        path_prefix=path_prefix,
        default_page_limit=default_page_limit,
    )
