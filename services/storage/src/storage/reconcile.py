"""
Orphan blob sweeper for TranscriptVault.

A compensating delete after a failed metadata write can itself fail,
leaving a blob no record points at. The sweeper finds such blobs under
the storage prefix and removes them. Only blobs older than a grace
period are considered, so content of an upload whose metadata write is
still in flight is never touched.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import structlog

from storage.content_store import ContentStore
from storage.metadata_store import MetadataStore
from tv_common.metrics import orphan_blobs_swept_total
from tv_common.utils import utc_now

logger = structlog.get_logger(__name__)


@dataclass
class SweepReport:
    """Outcome of one sweep."""

    dry_run: bool = False
    scanned: int = 0
    too_recent: int = 0
    referenced: int = 0
    orphaned: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class OrphanSweeper:
    """Deletes blobs that no metadata record references.

    Parameters
    ----------
    content_store:
        Store to list and delete blobs in.
    metadata_store:
        Index consulted for referenced blob keys.
    path_prefix:
        Only keys below this prefix are swept.
    grace:
        Default minimum blob age.
    clock:
        Returns the current UTC time.
    """

    def __init__(
        self,
        content_store: ContentStore,
        metadata_store: MetadataStore,
        path_prefix: str,
        *,
        grace: timedelta = timedelta(hours=1),
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._content = content_store
        self._metadata = metadata_store
        self._prefix = path_prefix.strip("/") + "/"
        self._grace = grace
        self._clock = clock

    async def sweep(
        self,
        older_than: timedelta | None = None,
        *,
        dry_run: bool = False,
    ) -> SweepReport:
        """Find and (unless *dry_run*) delete orphaned blobs.

        A blob that fails to delete is recorded in ``failed`` and the sweep
        moves on; running it again retries.
        """
        grace = self._grace if older_than is None else older_than
        cutoff = self._clock() - grace
        report = SweepReport(dry_run=dry_run)

        blobs = await self._content.list_blobs(self._prefix)
        report.scanned = len(blobs)
        candidates = [blob for blob in blobs if blob.last_modified <= cutoff]
        report.too_recent = report.scanned - len(candidates)

        referenced = await self._metadata.existing_blob_keys(blob.key for blob in candidates)
        report.referenced = len(referenced)

        for blob in candidates:
            if blob.key in referenced:
                continue
            report.orphaned.append(blob.key)
            if dry_run:
                continue
            try:
                await self._content.delete(blob.key)
            except Exception:  # noqa: BLE001 - one bad blob must not abort the sweep
                logger.exception("orphan_delete_failed", blob_key=blob.key)
                report.failed.append(blob.key)
                continue
            orphan_blobs_swept_total.inc()
            report.deleted.append(blob.key)

        logger.info(
            "orphan_sweep_finished",
            dry_run=dry_run,
            scanned=report.scanned,
            orphaned=len(report.orphaned),
            deleted=len(report.deleted),
            failed=len(report.failed),
        )
        return report
