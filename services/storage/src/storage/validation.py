"""
Input validation for the storage core.

All checks run before any store is touched and collect every violation,
so a caller sees the full list in one ``ValidationError``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pydantic

from storage.errors import FieldViolation, ValidationError
from storage.filters import Pagination, SearchFilters, SearchQuery
from tv_common.models import ProcessingStatus, UploadMetadata
from tv_common.utils import is_valid_iso_date

_STATUS_VALUES = [status.value for status in ProcessingStatus]


def _pydantic_violations(exc: pydantic.ValidationError) -> list[FieldViolation]:
    violations: list[FieldViolation] = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "metadata"
        if error["type"] == "missing":
            message = "required field missing"
        else:
            message = error["msg"].removeprefix("Value error, ")
        violations.append(FieldViolation(field, message))
    return violations


def _metadata_violations(
    metadata: UploadMetadata | Mapping[str, Any] | None,
) -> tuple[UploadMetadata | None, list[FieldViolation]]:
    if isinstance(metadata, UploadMetadata):
        return metadata, []
    if not isinstance(metadata, Mapping):
        return None, [FieldViolation("metadata", "must be an object")]
    try:
        return UploadMetadata.model_validate(dict(metadata)), []
    except pydantic.ValidationError as exc:
        return None, _pydantic_violations(exc)


def validate_upload_metadata(metadata: UploadMetadata | Mapping[str, Any] | None) -> UploadMetadata:
    """Normalize upload metadata or raise ``ValidationError`` with every violation."""
    normalized, violations = _metadata_violations(metadata)
    if violations or normalized is None:
        raise ValidationError(violations)
    return normalized


def validate_upload(
    content: str | bytes,
    metadata: UploadMetadata | Mapping[str, Any] | None,
) -> tuple[bytes, UploadMetadata]:
    """Validate an upload request.

    Returns:
        The content as bytes and the normalized metadata.

    Raises:
        ValidationError: Listing every problem with content and metadata.
    """
    violations: list[FieldViolation] = []

    data: bytes = b""
    if isinstance(content, str):
        data = content.encode("utf-8")
    elif isinstance(content, (bytes, bytearray, memoryview)):
        data = bytes(content)
    else:
        violations.append(FieldViolation("content", "must be text or bytes"))
    if not data and not violations:
        violations.append(FieldViolation("content", "must not be empty"))

    normalized, metadata_violations = _metadata_violations(metadata)
    violations.extend(metadata_violations)

    if violations or normalized is None:
        raise ValidationError(violations)
    return data, normalized


def _pagination_violations(limit: object, offset: object) -> list[FieldViolation]:
    violations: list[FieldViolation] = []
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        violations.append(FieldViolation("limit", "must be a positive integer"))
    if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
        violations.append(FieldViolation("offset", "must be a non-negative integer"))
    return violations


def validate_pagination(
    limit: int | None,
    offset: int | None,
    *,
    default_limit: int,
) -> Pagination:
    """Apply defaults to and validate a page window."""
    limit = default_limit if limit is None else limit
    offset = 0 if offset is None else offset
    violations = _pagination_violations(limit, offset)
    if violations:
        raise ValidationError(violations)
    return Pagination(limit=limit, offset=offset)


def _optional_text(name: str, value: object, violations: list[FieldViolation]) -> str | None:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        violations.append(FieldViolation(name, "must be a string"))
        return None
    return value


def validate_search_query(
    query: SearchQuery,
    *,
    default_limit: int,
) -> tuple[SearchFilters, Pagination]:
    """Validate a search request and build its filters and page window.

    Raises:
        ValidationError: Listing every invalid predicate and pagination value.
    """
    violations: list[FieldViolation] = []

    title = _optional_text("title", query.title, violations)
    speaker = _optional_text("speaker", query.speaker, violations)
    tag = _optional_text("tag", query.tag, violations)
    date_from = _optional_text("dateFrom", query.date_from, violations)
    date_to = _optional_text("dateTo", query.date_to, violations)
    raw_status = _optional_text("status", query.status, violations)

    from_ok = date_from is None or is_valid_iso_date(date_from)
    to_ok = date_to is None or is_valid_iso_date(date_to)
    if not from_ok:
        violations.append(
            FieldViolation("dateFrom", f"{date_from!r} must be a valid date in YYYY-MM-DD format"),
        )
    if not to_ok:
        violations.append(
            FieldViolation("dateTo", f"{date_to!r} must be a valid date in YYYY-MM-DD format"),
        )
    if date_from and date_to and from_ok and to_ok and date_from > date_to:
        violations.append(
            FieldViolation(
                "dateFrom",
                f"{date_from!r} must be before or equal to dateTo {date_to!r}",
            ),
        )

    status: ProcessingStatus | None = None
    if raw_status is not None:
        if raw_status in _STATUS_VALUES:
            status = ProcessingStatus(raw_status)
        else:
            violations.append(
                FieldViolation(
                    "status",
                    f"{raw_status!r} must be one of: {', '.join(_STATUS_VALUES)}",
                ),
            )

    limit = default_limit if query.limit is None else query.limit
    offset = 0 if query.offset is None else query.offset
    violations.extend(_pagination_violations(limit, offset))

    if violations:
        raise ValidationError(violations)

    filters = SearchFilters(
        title=title,
        speaker=speaker,
        tag=tag,
        date_from=date_from,
        date_to=date_to,
        status=status,
    )
    return filters, Pagination(limit=limit, offset=offset)
