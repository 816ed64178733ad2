"""
Shared utility functions for TranscriptVault.

Timestamp helpers and the date canonicaliser: transcript dates travel as
``YYYY-MM-DD`` strings and are stored as SQL ``DATE`` values.
"""

from __future__ import annotations

import re
import secrets
import time
from datetime import date, datetime, timezone

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def utc_now() -> datetime:
    """Return the current timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def is_valid_iso_date(value: object) -> bool:
    """Return ``True`` when *value* is a ``YYYY-MM-DD`` string naming a real day."""
    if not isinstance(value, str) or not _ISO_DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def parse_iso_date(value: str) -> date:
    """Convert a canonical ``YYYY-MM-DD`` string to a ``date``.

    Raises:
        ValueError: If *value* is not a valid canonical date.
    """
    if not is_valid_iso_date(value):
        raise ValueError(f"Invalid date {value!r}; expected YYYY-MM-DD")
    return date.fromisoformat(value)


def format_iso_date(value: date | datetime | str) -> str:
    """Render a stored date back into canonical ``YYYY-MM-DD`` form."""
    if isinstance(value, datetime):
        return value.astimezone(timezone.utc).date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return parse_iso_date(value).isoformat()


def generate_source_id() -> str:
    """Return a new source id for uploads that did not supply one."""
    return f"transcript_{int(time.time() * 1000)}_{secrets.token_hex(4)}"
