"""
Tests for tv-common transcript data models.

Validates upload metadata normalization, record constraints and the
composed result models.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from tv_common.models import (
    ProcessingStatus,
    TranscriptContent,
    TranscriptFormat,
    TranscriptMetadata,
    TranscriptPage,
    UploadMetadata,
)

_NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def _record(**overrides) -> TranscriptMetadata:
    defaults = dict(
        source_id="abc",
        version=1,
        title="Weekly sync",
        date="2024-01-15",
        speakers=["A", "B"],
        format="json",
        uploaded_at=_NOW,
        blob_key="transcripts/abc/v1_aaaaaaaa",
        url="memory://transcripts/transcripts/abc/v1_aaaaaaaa",
        size=12,
    )
    defaults.update(overrides)
    return TranscriptMetadata(**defaults)


# ===========================================================================
# UploadMetadata
# ===========================================================================


class TestUploadMetadata:
    def test_minimal(self) -> None:
        m = UploadMetadata(title="t", date="2024-01-15", speakers=[], format="text")
        assert m.source_id is None
        assert m.tags is None
        assert m.format is TranscriptFormat.TEXT

    def test_camel_case_source_id(self) -> None:
        m = UploadMetadata.model_validate(
            {"sourceId": "abc", "title": "t", "date": "2024-01-15", "speakers": ["A"], "format": "srt"},
        )
        assert m.source_id == "abc"

    def test_snake_case_source_id(self) -> None:
        m = UploadMetadata(source_id="abc", title="t", date="2024-01-15", speakers=[], format="vtt")
        assert m.source_id == "abc"

    def test_unknown_keys_ignored(self) -> None:
        m = UploadMetadata.model_validate(
            {"title": "t", "date": "2024-01-15", "speakers": [], "format": "json", "extra": 1},
        )
        assert not hasattr(m, "extra")

    def test_blank_title_rejected(self) -> None:
        with pytest.raises(ValidationError):
            UploadMetadata(title="   ", date="2024-01-15", speakers=[], format="json")

    def test_blank_source_id_rejected(self) -> None:
        with pytest.raises(ValidationError):
            UploadMetadata(source_id=" ", title="t", date="2024-01-15", speakers=[], format="json")

    @pytest.mark.parametrize("bad", ["2024-1-15", "15/01/2024", "2024-02-30", "2024-01-15T00:00:00"])
    def test_non_canonical_date_rejected(self, bad: str) -> None:
        with pytest.raises(ValidationError):
            UploadMetadata(title="t", date=bad, speakers=[], format="json")

    def test_unknown_format_rejected(self) -> None:
        with pytest.raises(ValidationError):
            UploadMetadata(title="t", date="2024-01-15", speakers=[], format="docx")

    def test_duplicate_tags_dropped_in_order(self) -> None:
        m = UploadMetadata(
            title="t", date="2024-01-15", speakers=[], format="json", tags=["b", "a", "b", "a", "c"],
        )
        assert m.tags == ["b", "a", "c"]

    def test_tags_optional(self) -> None:
        assert UploadMetadata(title="t", date="2024-01-15", speakers=[], format="json").tags is None


# ===========================================================================
# TranscriptMetadata
# ===========================================================================


class TestTranscriptMetadata:
    def test_defaults(self) -> None:
        r = _record()
        assert r.processing_status is ProcessingStatus.PENDING
        assert r.processing_completed_at is None
        assert r.tags == []

    def test_version_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            _record(version=0)

    def test_size_must_be_non_negative(self) -> None:
        with pytest.raises(ValidationError):
            _record(size=-1)

    def test_frozen(self) -> None:
        r = _record()
        with pytest.raises(ValidationError):
            r.title = "changed"

    def test_model_copy_update(self) -> None:
        r = _record()
        done = r.model_copy(update={"processing_status": ProcessingStatus.PROCESSED})
        assert done.processing_status is ProcessingStatus.PROCESSED
        assert r.processing_status is ProcessingStatus.PENDING


class TestComposedModels:
    def test_content_text(self) -> None:
        c = TranscriptContent(content="héllo".encode(), metadata=_record())
        assert c.text == "héllo"

    def test_page_defaults(self) -> None:
        page = TranscriptPage()
        assert page.items == []
        assert page.total == 0
