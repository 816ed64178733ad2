"""
Error taxonomy for the TranscriptVault storage core.

Every failure surfaces to the caller as a ``TranscriptStoreError``
subclass. Store adapters wrap driver exceptions into ``ContentStoreError``
or ``MetadataStoreError`` classified by ``StoreErrorKind``; the HTTP layer
maps each class (and kind) onto a status code.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any


class StoreErrorKind(str, enum.Enum):
    """Classification of an underlying store failure."""

    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    QUOTA_EXCEEDED = "quota_exceeded"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class FieldViolation:
    """A single field-level validation failure."""

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class TranscriptStoreError(Exception):
    """Base class for all storage-core errors."""

    def details(self) -> dict[str, Any]:
        """Structured context for error responses and logs."""
        return {}


class ValidationError(TranscriptStoreError):
    """Input rejected before any store was touched.

    Carries every violation found, not just the first.
    """

    def __init__(self, violations: Iterable[FieldViolation]) -> None:
        self.violations = list(violations)
        summary = "; ".join(str(v) for v in self.violations) or "invalid input"
        super().__init__(f"Validation failed: {summary}")

    @property
    def fields(self) -> list[str]:
        return [v.field for v in self.violations]

    def details(self) -> dict[str, Any]:
        return {
            "violations": [
                {"field": v.field, "message": v.message} for v in self.violations
            ],
        }


class NotFoundError(TranscriptStoreError):
    """No metadata record exists for the requested source id / version."""

    def __init__(self, source_id: str, version: int | None = None) -> None:
        self.source_id = source_id
        self.version = version
        target = f"sourceId {source_id!r}"
        if version is not None:
            target += f" version {version}"
        super().__init__(f"Transcript with {target} not found")

    def details(self) -> dict[str, Any]:
        return {"source_id": self.source_id, "version": self.version}


class VersionConflictError(TranscriptStoreError):
    """A concurrent upload committed the same ``(source_id, version)`` first.

    The caller may retry the whole upload.
    """

    def __init__(self, source_id: str, version: int) -> None:
        self.source_id = source_id
        self.version = version
        super().__init__(
            f"Version {version} of {source_id!r} was committed by a concurrent upload; retry",
        )

    def details(self) -> dict[str, Any]:
        return {"source_id": self.source_id, "version": self.version}


class StatusTransitionError(TranscriptStoreError):
    """A processing-status update violates the one-way lifecycle."""

    def __init__(self, current: str, attempted: str, allowed: list[str]) -> None:
        self.current = current
        self.attempted = attempted
        self.allowed = allowed
        super().__init__(
            f"Cannot move processing status from {current!r} to {attempted!r}",
        )

    def details(self) -> dict[str, Any]:
        return {
            "current_status": self.current,
            "attempted_status": self.attempted,
            "allowed_next_statuses": self.allowed,
        }


class StoreError(TranscriptStoreError):
    """Wrapped failure of an external store call."""

    store = "store"

    def __init__(
        self,
        message: str,
        *,
        kind: StoreErrorKind = StoreErrorKind.UNKNOWN,
        operation: str = "",
    ) -> None:
        self.kind = kind
        self.operation = operation
        super().__init__(message)

    def details(self) -> dict[str, Any]:
        return {"store": self.store, "kind": self.kind.value, "operation": self.operation}


class ContentStoreError(StoreError):
    """Object-store (blob) operation failed."""

    store = "content"


class MetadataStoreError(StoreError):
    """Metadata-index operation failed."""

    store = "metadata"


class DuplicateVersionError(MetadataStoreError):
    """Insert hit the ``(source_id, version)`` uniqueness constraint."""

    def __init__(self, source_id: str, version: int) -> None:
        self.source_id = source_id
        self.version = version
        super().__init__(
            f"Metadata for {source_id!r} version {version} already exists",
            operation="insert",
        )
