"""Tests for storage.keys."""

from __future__ import annotations

import re

import pytest

from storage.keys import KeyGenerator, sanitize_source_id


class TestSanitizeSourceId:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("abc", "abc"),
            ("team/weekly", "team-weekly"),
            ("board meeting  q1", "board_meeting_q1"),
            ('a<b>c:d"e|f?g*h', "a-b-c-d-e-f-g-h"),
            ("  padded  ", "padded"),
        ],
    )
    def test_sanitizes(self, raw: str, expected: str) -> None:
        assert sanitize_source_id(raw) == expected


class TestKeyGenerator:
    def test_shape(self) -> None:
        key = KeyGenerator("transcripts").generate("abc", 3)
        assert re.fullmatch(r"transcripts/abc/v3_[A-Za-z0-9_-]{8}", key)

    def test_prefix_slashes_trimmed(self) -> None:
        gen = KeyGenerator("/vault/transcripts/")
        assert gen.prefix == "vault/transcripts"
        assert gen.generate("abc", 1).startswith("vault/transcripts/abc/v1_")

    def test_same_inputs_give_distinct_keys(self) -> None:
        gen = KeyGenerator()
        keys = {gen.generate("abc", 1) for _ in range(50)}
        assert len(keys) == 50

    def test_source_id_is_sanitized(self) -> None:
        key = KeyGenerator().generate("x/y z", 2)
        assert key.startswith("transcripts/x-y_z/v2_")

    def test_custom_suffix_length(self) -> None:
        key = KeyGenerator(suffix_length=12).generate("abc", 1)
        assert len(key.split("/v1_", 1)[1]) == 12
