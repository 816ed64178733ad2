"""
Version allocation for transcript uploads.
"""

from __future__ import annotations

from storage.metadata_store import MetadataStore


class VersionAllocator:
    """Computes the candidate version for the next upload of a source id.

    The number is advisory: nothing is reserved. Two concurrent uploads may
    receive the same candidate and the metadata store's
    ``(source_id, version)`` constraint decides which one commits.
    """

    def __init__(self, metadata_store: MetadataStore) -> None:
        self._metadata = metadata_store

    async def next_version(self, source_id: str) -> int:
        current = await self._metadata.max_version(source_id)
        return (current or 0) + 1
