"""Shared fixtures for storage core tests."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from storage.content_store import InMemoryContentStore
from storage.coordinator import ConsistencyCoordinator
from storage.keys import KeyGenerator
from storage.metadata_store import InMemoryMetadataStore
from storage.service import TranscriptService, compose_service
from tv_common.models import TranscriptMetadata


# ─── Helpers ─────────────────────────────────────────────────────


def make_upload_metadata(**overrides: Any) -> dict[str, Any]:
    """Valid upload metadata in request (camelCase) form."""
    meta: dict[str, Any] = {
        "sourceId": "abc",
        "title": "Quarterly review",
        "date": "2024-01-15",
        "speakers": ["A", "B"],
        "format": "json",
    }
    meta.update(overrides)
    return {k: v for k, v in meta.items() if v is not None}


def make_record(**overrides: Any) -> TranscriptMetadata:
    version = overrides.get("version", 1)
    source_id = overrides.get("source_id", "abc")
    defaults: dict[str, Any] = dict(
        source_id=source_id,
        version=version,
        title="Quarterly review",
        date="2024-01-15",
        speakers=["A", "B"],
        format="json",
        tags=[],
        uploaded_at=datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc),
        blob_key=f"transcripts/{source_id}/v{version}_abcdefgh",
        url=f"memory://transcripts/transcripts/{source_id}/v{version}_abcdefgh",
        size=10,
    )
    defaults.update(overrides)
    return TranscriptMetadata(**defaults)


# ─── Fixtures ────────────────────────────────────────────────────


@pytest.fixture()
def content_store() -> InMemoryContentStore:
    return InMemoryContentStore()


@pytest.fixture()
def metadata_store() -> InMemoryMetadataStore:
    return InMemoryMetadataStore()


@pytest.fixture()
def coordinator(
    content_store: InMemoryContentStore,
    metadata_store: InMemoryMetadataStore,
) -> ConsistencyCoordinator:
    return ConsistencyCoordinator(content_store, metadata_store, KeyGenerator("transcripts"))


@pytest.fixture()
def service(
    content_store: InMemoryContentStore,
    metadata_store: InMemoryMetadataStore,
) -> TranscriptService:
    return compose_service(content_store, metadata_store, path_prefix="transcripts")


@pytest.fixture()
def mock_db_session() -> AsyncMock:
    """Async mock standing in for an ``AsyncSession``."""
    session = AsyncMock()
    session.add = MagicMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.execute = AsyncMock()
    return session


@pytest.fixture()
def mock_db_session_factory(mock_db_session: AsyncMock):
    """Factory that always returns the same mock session."""
    return MagicMock(return_value=mock_db_session)


@pytest.fixture()
def mock_s3_client() -> MagicMock:
    """Synchronous mock standing in for a boto3 S3 client."""
    client = MagicMock(name="s3")
    client.put_object.return_value = {"ETag": '"etag"'}
    client.delete_object.return_value = {}
    client.head_bucket.return_value = {}
    return client


@pytest.fixture()
def upload_meta():
    """Builder for valid upload metadata; ``None`` overrides drop a key."""
    return make_upload_metadata


@pytest.fixture()
def record_factory():
    """Builder for stored ``TranscriptMetadata`` records."""
    return make_record
