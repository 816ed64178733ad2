"""
Query value objects shared by the Query Engine and Metadata Store adapters.

``SearchQuery`` is the raw caller request; ``SearchFilters`` and
``Pagination`` are the validated forms handed to a metadata store.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

from tv_common.models import ProcessingStatus, TranscriptMetadata

_CAMEL_TO_SNAKE = {"dateFrom": "date_from", "dateTo": "date_to"}


@dataclass(frozen=True, slots=True)
class SearchQuery:
    """Caller-facing search request; every predicate is optional."""

    title: str | None = None
    speaker: str | None = None
    tag: str | None = None
    date_from: str | None = None
    date_to: str | None = None
    status: str | None = None
    limit: int | None = None
    offset: int | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> SearchQuery:
        """Build a query from request parameters; camelCase keys are accepted."""
        names = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in raw.items():
            name = _CAMEL_TO_SNAKE.get(key, key)
            if name in names:
                values[name] = value
        return cls(**values)


@dataclass(frozen=True, slots=True)
class Pagination:
    """Validated page window."""

    limit: int
    offset: int = 0


@dataclass(frozen=True, slots=True)
class SearchFilters:
    """Validated predicates, combined with logical AND."""

    title: str | None = None
    speaker: str | None = None
    tag: str | None = None
    date_from: str | None = None
    date_to: str | None = None
    status: ProcessingStatus | None = None

    @property
    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.title,
                self.speaker,
                self.tag,
                self.date_from,
                self.date_to,
                self.status,
            )
        )

    def matches(self, record: TranscriptMetadata) -> bool:
        """Evaluate the predicates against a record held in memory."""
        if self.title is not None and self.title.casefold() not in record.title.casefold():
            return False
        if self.speaker is not None and self.speaker not in record.speakers:
            return False
        if self.tag is not None and self.tag not in record.tags:
            return False
        # Canonical YYYY-MM-DD strings order lexicographically.
        if self.date_from is not None and record.date < self.date_from:
            return False
        if self.date_to is not None and record.date > self.date_to:
            return False
        if self.status is not None and record.processing_status != self.status:
            return False
        return True
