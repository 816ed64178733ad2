"""
Content-address generation for transcript blobs.

Keys have the shape ``{prefix}/{sanitized source id}/v{version}_{suffix}``.
The random suffix makes two keys for the same ``(source_id, version)``
distinct, so a writer that lost the version race never overwrites the
winner's blob.
"""

from __future__ import annotations

import re
import secrets
import string

_SUFFIX_ALPHABET = string.ascii_letters + string.digits + "_-"
_WHITESPACE_RE = re.compile(r"\s+")
_UNSAFE_RE = re.compile(r'[<>:"|?*\\]')


def sanitize_source_id(source_id: str) -> str:
    """Make *source_id* safe to embed as a single path segment."""
    cleaned = source_id.strip().replace("/", "-")
    cleaned = _WHITESPACE_RE.sub("_", cleaned)
    return _UNSAFE_RE.sub("-", cleaned)


class KeyGenerator:
    """Builds collision-resistant blob keys under a fixed path prefix."""

    def __init__(self, path_prefix: str = "transcripts", suffix_length: int = 8) -> None:
        self._prefix = path_prefix.strip("/")
        self._suffix_length = suffix_length

    @property
    def prefix(self) -> str:
        return self._prefix

    def generate(self, source_id: str, version: int) -> str:
        suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(self._suffix_length))
        return f"{self._prefix}/{sanitize_source_id(source_id)}/v{version}_{suffix}"
