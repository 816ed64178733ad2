"""Tests for storage.reconcile."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

from storage.errors import ContentStoreError
from storage.reconcile import OrphanSweeper


def _future_clock(hours: int = 2):
    return lambda: datetime.now(timezone.utc) + timedelta(hours=hours)


class TestOrphanSweeper:
    async def test_removes_only_unreferenced(self, coordinator, content_store, metadata_store, upload_meta) -> None:
        kept = await coordinator.upload("x", upload_meta())
        await content_store.put("transcripts/abc/v9_orphaned", b"lost")
        await content_store.put("elsewhere/abc/v1_foreign", b"not ours")

        sweeper = OrphanSweeper(content_store, metadata_store, "transcripts", clock=_future_clock())
        report = await sweeper.sweep()

        assert report.scanned == 2
        assert report.referenced == 1
        assert report.orphaned == ["transcripts/abc/v9_orphaned"]
        assert report.deleted == ["transcripts/abc/v9_orphaned"]
        assert kept.blob_key in content_store
        assert "elsewhere/abc/v1_foreign" in content_store

    async def test_grace_period_protects_recent_blobs(self, content_store, metadata_store) -> None:
        await content_store.put("transcripts/abc/v1_inflight", b"new")
        sweeper = OrphanSweeper(content_store, metadata_store, "transcripts", grace=timedelta(hours=1))
        report = await sweeper.sweep()
        assert report.too_recent == 1
        assert report.orphaned == []
        assert "transcripts/abc/v1_inflight" in content_store

    async def test_older_than_override(self, content_store, metadata_store) -> None:
        await content_store.put("transcripts/abc/v1_x", b"1")
        sweeper = OrphanSweeper(content_store, metadata_store, "transcripts", grace=timedelta(days=1))
        report = await sweeper.sweep(older_than=timedelta(0))
        assert report.deleted == ["transcripts/abc/v1_x"]

    async def test_dry_run_deletes_nothing(self, content_store, metadata_store) -> None:
        await content_store.put("transcripts/abc/v1_x", b"1")
        sweeper = OrphanSweeper(content_store, metadata_store, "transcripts", clock=_future_clock())
        report = await sweeper.sweep(dry_run=True)
        assert report.dry_run is True
        assert report.orphaned == ["transcripts/abc/v1_x"]
        assert report.deleted == []
        assert "transcripts/abc/v1_x" in content_store

    async def test_delete_failures_reported(self, content_store, metadata_store) -> None:
        await content_store.put("transcripts/abc/v1_x", b"1")
        await content_store.put("transcripts/abc/v2_y", b"2")
        real_delete = content_store.delete

        async def _flaky(key: str) -> None:
            if key.endswith("_x"):
                raise ContentStoreError("denied", operation="delete")
            await real_delete(key)

        content_store.delete = _flaky
        sweeper = OrphanSweeper(content_store, metadata_store, "transcripts", clock=_future_clock())
        report = await sweeper.sweep()
        assert report.failed == ["transcripts/abc/v1_x"]
        assert report.deleted == ["transcripts/abc/v2_y"]

    async def test_unexpected_delete_error_does_not_abort(self, content_store, metadata_store) -> None:
        await content_store.put("transcripts/abc/v1_x", b"1")
        await content_store.put("transcripts/abc/v2_y", b"2")
        real_delete = content_store.delete

        async def _broken(key: str) -> None:
            if key.endswith("_x"):
                raise RuntimeError("thread pool shut down")
            await real_delete(key)

        content_store.delete = _broken
        sweeper = OrphanSweeper(content_store, metadata_store, "transcripts", clock=_future_clock())
        report = await sweeper.sweep()
        assert report.failed == ["transcripts/abc/v1_x"]
        assert report.deleted == ["transcripts/abc/v2_y"]

    async def test_lists_under_prefix(self, metadata_store) -> None:
        content = AsyncMock()
        content.list_blobs = AsyncMock(return_value=[])
        sweeper = OrphanSweeper(content, metadata_store, "/vault/transcripts/")
        await sweeper.sweep()
        content.list_blobs.assert_awaited_once_with("vault/transcripts/")
