"""
Query Engine for TranscriptVault.

Listing, search and version history over the metadata index. The engine
never touches the content store. Every request is validated in full
before the index is queried.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from storage.coordinator import check_source_id
from storage.filters import SearchFilters, SearchQuery
from storage.metadata_store import MetadataStore
from storage.validation import validate_pagination, validate_search_query
from tv_common.models import TranscriptMetadata, TranscriptPage

logger = structlog.get_logger(__name__)


class QueryEngine:
    """Read-only views over the metadata store.

    Parameters
    ----------
    metadata_store:
        The metadata index to query.
    default_limit:
        Page size used when the caller omits ``limit``.
    """

    def __init__(self, metadata_store: MetadataStore, *, default_limit: int = 10) -> None:
        self._metadata = metadata_store
        self._default_limit = default_limit

    async def list(self, limit: int | None = None, offset: int | None = None) -> TranscriptPage:
        """Latest version of every source id, newest upload first."""
        pagination = validate_pagination(limit, offset, default_limit=self._default_limit)
        items, total = await self._metadata.query(SearchFilters(), pagination, latest_only=True)
        return TranscriptPage(items=items, total=total)

    async def search(self, query: SearchQuery | Mapping[str, Any] | None = None) -> TranscriptPage:
        """Latest versions matching every given predicate.

        An empty query behaves like :meth:`list`.

        Raises:
            ValidationError: Listing every invalid predicate or page value.
        """
        if query is None:
            query = SearchQuery()
        elif not isinstance(query, SearchQuery):
            query = SearchQuery.from_mapping(query)
        filters, pagination = validate_search_query(query, default_limit=self._default_limit)
        items, total = await self._metadata.query(filters, pagination, latest_only=True)
        logger.debug(
            "transcripts_searched",
            filtered=not filters.is_empty,
            total=total,
            returned=len(items),
        )
        return TranscriptPage(items=items, total=total)

    async def list_versions(self, source_id: str) -> list[TranscriptMetadata]:
        """Every stored version of *source_id*, highest first; empty when unknown."""
        check_source_id(source_id)
        return await self._metadata.list_versions(source_id)
