"""
Prometheus metrics for TranscriptVault.

Shared metric definitions for the storage core: upload and deletion
counters, compensation outcomes, orphan sweeps and per-store latency.
The API exposes them on ``/metrics``.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager

from prometheus_client import Counter, Histogram

transcript_uploads_total = Counter(
    "transcript_uploads_total",
    "Transcript upload attempts by outcome",
    ["outcome"],
)
transcript_deletions_total = Counter(
    "transcript_deletions_total",
    "Transcript versions deleted",
    ["scope"],
)
blob_compensations_total = Counter(
    "blob_compensations_total",
    "Compensating blob deletes after a failed metadata write",
    ["outcome"],
)
orphan_blobs_swept_total = Counter(
    "orphan_blobs_swept_total",
    "Unreferenced blobs removed by the orphan sweeper",
)
store_operation_duration_seconds = Histogram(
    "store_operation_duration_seconds",
    "Latency of content and metadata store calls",
    ["store", "operation"],
)


@contextmanager
def observe_store_call(store: str, operation: str) -> Iterator[None]:
    """Record the wall time of the wrapped store call."""
    start = time.perf_counter()
    try:
        yield
    finally:
        store_operation_duration_seconds.labels(store=store, operation=operation).observe(
            time.perf_counter() - start,
        )
