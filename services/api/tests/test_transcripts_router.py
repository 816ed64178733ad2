"""
Tests for the transcripts API router.

Exercises upload, retrieval, history, listing, search, status updates
and deletes through the HTTP layer, plus error-to-status mapping.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from api.errors import status_code_for
from storage.errors import (
    ContentStoreError,
    MetadataStoreError,
    NotFoundError,
    StatusTransitionError,
    StoreErrorKind,
    ValidationError,
    VersionConflictError,
)

BASE = "/api/v1/transcripts"


# ─── Helpers ──────────────────────────────────────────────────


def _upload(client: TestClient, metadata: dict, content: str = "hello world", **overrides):
    return client.post(BASE, json={"content": content, "metadata": {**metadata, **overrides}})


# ─── POST /api/v1/transcripts ─────────────────────────────────


class TestUpload:
    def test_returns_201(self, client: TestClient, metadata: dict):
        resp = _upload(client, metadata)
        assert resp.status_code == 201
        data = resp.json()
        assert data["metadata"]["source_id"] == "abc"
        assert data["metadata"]["version"] == 1
        assert data["metadata"]["processing_status"] == "pending"
        assert data["blob_key"].startswith("transcripts/abc/v1_")
        assert data["url"].endswith(data["blob_key"])

    def test_second_upload_is_version_two(self, client: TestClient, metadata: dict):
        _upload(client, metadata)
        assert _upload(client, metadata).json()["metadata"]["version"] == 2

    def test_missing_title_is_400(self, client: TestClient, metadata: dict):
        metadata.pop("title")
        resp = _upload(client, metadata)
        assert resp.status_code == 400
        violations = resp.json()["details"]["violations"]
        assert {"field": "title", "message": "required field missing"} in violations

    def test_reports_every_violation(self, client: TestClient, metadata: dict):
        resp = _upload(client, metadata, content="", date="15-01-2024", format="pdf")
        fields = {v["field"] for v in resp.json()["details"]["violations"]}
        assert fields == {"content", "date", "format"}

    def test_malformed_body_is_400(self, client: TestClient, metadata: dict):
        resp = client.post(BASE, json={"metadata": metadata})
        assert resp.status_code == 400
        assert resp.json()["details"]["violations"][0]["field"] == "content"

    def test_correlation_id_echoed(self, client: TestClient, metadata: dict):
        resp = client.post(
            BASE,
            json={"content": "x", "metadata": metadata},
            headers={"X-Request-ID": "req-123"},
        )
        assert resp.headers["X-Request-ID"] == "req-123"

    def test_correlation_id_generated(self, client: TestClient):
        resp = client.get(BASE)
        assert len(resp.headers["X-Request-ID"]) == 36


# ─── GET /api/v1/transcripts ──────────────────────────────────


class TestList:
    def test_latest_per_source(self, client: TestClient, metadata: dict):
        _upload(client, metadata)
        _upload(client, metadata)
        _upload(client, metadata, sourceId="other")
        data = client.get(BASE).json()
        assert data["total"] == 2
        assert {(i["source_id"], i["version"]) for i in data["items"]} == {("abc", 2), ("other", 1)}

    def test_pagination(self, client: TestClient, metadata: dict):
        for sid in ("a", "b", "c"):
            _upload(client, metadata, sourceId=sid)
        data = client.get(BASE, params={"limit": 1, "offset": 1}).json()
        assert len(data["items"]) == 1
        assert data["total"] == 3
        assert data["limit"] == 1

    @pytest.mark.parametrize("params", [{"limit": 0}, {"offset": -1}, {"limit": "ten"}])
    def test_bad_pagination_is_400(self, client: TestClient, params: dict):
        assert client.get(BASE, params=params).status_code == 400


# ─── GET /api/v1/transcripts/search ───────────────────────────


class TestSearch:
    def test_filters(self, client: TestClient, metadata: dict):
        _upload(client, metadata, title="Board meeting", tags=["board"])
        _upload(client, metadata, sourceId="xyz", title="Standup", speakers=["Dana"])
        data = client.get(f"{BASE}/search", params={"title": "board"}).json()
        assert [i["source_id"] for i in data["items"]] == ["abc"]
        data = client.get(f"{BASE}/search", params={"speaker": "Dana"}).json()
        assert [i["source_id"] for i in data["items"]] == ["xyz"]

    def test_date_range(self, client: TestClient, metadata: dict):
        _upload(client, metadata, date="2024-03-01")
        params = {"dateFrom": "2024-02-01", "dateTo": "2024-03-31"}
        assert client.get(f"{BASE}/search", params=params).json()["total"] == 1

    def test_inverted_range_is_400(self, client: TestClient):
        resp = client.get(f"{BASE}/search", params={"dateFrom": "2024-02-01", "dateTo": "2024-01-01"})
        assert resp.status_code == 400
        assert resp.json()["details"]["violations"][0]["field"] == "dateFrom"

    def test_bad_status_is_400(self, client: TestClient):
        assert client.get(f"{BASE}/search", params={"status": "done"}).status_code == 400


# ─── GET /api/v1/transcripts/{source_id} ──────────────────────


class TestGet:
    def test_latest(self, client: TestClient, metadata: dict):
        _upload(client, metadata, content="first")
        _upload(client, metadata, content="second")
        data = client.get(f"{BASE}/abc").json()
        assert data["content"] == "second"
        assert data["metadata"]["version"] == 2

    def test_specific_version(self, client: TestClient, metadata: dict):
        _upload(client, metadata, content="first")
        _upload(client, metadata, content="second")
        assert client.get(f"{BASE}/abc", params={"version": 1}).json()["content"] == "first"

    def test_missing_is_404(self, client: TestClient):
        resp = client.get(f"{BASE}/nope")
        assert resp.status_code == 404
        assert resp.json()["details"]["source_id"] == "nope"

    def test_versions(self, client: TestClient, metadata: dict):
        for _ in range(3):
            _upload(client, metadata)
        data = client.get(f"{BASE}/abc/versions").json()
        assert [v["version"] for v in data["versions"]] == [3, 2, 1]
        assert data["total"] == 3

    def test_versions_unknown_is_empty(self, client: TestClient):
        assert client.get(f"{BASE}/nope/versions").json() == {"source_id": "nope", "versions": [], "total": 0}


# ─── PATCH /api/v1/transcripts/{source_id}/versions/{version} ──


class TestUpdateStatus:
    def test_mark_processed(self, client: TestClient, metadata: dict):
        _upload(client, metadata)
        resp = client.patch(f"{BASE}/abc/versions/1", json={"status": "processed"})
        assert resp.status_code == 200
        assert resp.json()["processing_status"] == "processed"
        assert resp.json()["processing_completed_at"] is not None

    def test_regression_is_409(self, client: TestClient, metadata: dict):
        _upload(client, metadata)
        client.patch(f"{BASE}/abc/versions/1", json={"status": "failed"})
        resp = client.patch(f"{BASE}/abc/versions/1", json={"status": "pending"})
        assert resp.status_code == 409
        assert resp.json()["details"]["current_status"] == "failed"

    def test_unknown_status_is_400(self, client: TestClient, metadata: dict):
        _upload(client, metadata)
        assert client.patch(f"{BASE}/abc/versions/1", json={"status": "done"}).status_code == 400

    def test_missing_version_is_404(self, client: TestClient):
        assert client.patch(f"{BASE}/abc/versions/3", json={"status": "processed"}).status_code == 404


# ─── DELETE ───────────────────────────────────────────────────


class TestDelete:
    def test_delete_version(self, client: TestClient, metadata: dict):
        _upload(client, metadata)
        _upload(client, metadata)
        assert client.delete(f"{BASE}/abc/versions/1").status_code == 204
        assert [v["version"] for v in client.get(f"{BASE}/abc/versions").json()["versions"]] == [2]
        assert client.delete(f"{BASE}/abc/versions/1").status_code == 404

    def test_delete_all(self, client: TestClient, metadata: dict):
        _upload(client, metadata)
        _upload(client, metadata)
        resp = client.delete(f"{BASE}/abc")
        assert resp.json() == {"source_id": "abc", "deleted_versions": 2}
        assert client.get(f"{BASE}/abc").status_code == 404

    def test_delete_all_unknown(self, client: TestClient):
        assert client.delete(f"{BASE}/nobody").json()["deleted_versions"] == 0


# ─── Error mapping ────────────────────────────────────────────


class TestErrorMapping:
    @pytest.mark.parametrize(("exc", "status"), [
        (ValidationError([]), 400),
        (NotFoundError("abc"), 404),
        (VersionConflictError("abc", 2), 409),
        (StatusTransitionError("processed", "pending", []), 409),
        (ContentStoreError("x", kind=StoreErrorKind.NOT_FOUND), 404),
        (ContentStoreError("x", kind=StoreErrorKind.UNAUTHORIZED), 502),
        (MetadataStoreError("x", kind=StoreErrorKind.QUOTA_EXCEEDED), 507),
        (MetadataStoreError("x", kind=StoreErrorKind.UNAVAILABLE), 503),
        (ContentStoreError("x"), 500),
    ])
    def test_status_code_for(self, exc, status: int):
        assert status_code_for(exc) == status

    def test_store_outage_is_503(self, client: TestClient, service, metadata: dict):
        service.upload = AsyncMock(
            side_effect=ContentStoreError("down", kind=StoreErrorKind.UNAVAILABLE, operation="put"),
        )
        resp = _upload(client, metadata)
        assert resp.status_code == 503
        assert resp.json()["details"] == {"store": "content", "kind": "unavailable", "operation": "put"}

    def test_conflict_is_409(self, client: TestClient, service, metadata: dict):
        service.upload = AsyncMock(side_effect=VersionConflictError("abc", 1))
        assert _upload(client, metadata).status_code == 409

    def test_unconfigured_service_is_503(self, unconfigured_client: TestClient):
        assert unconfigured_client.get(BASE).status_code == 503
