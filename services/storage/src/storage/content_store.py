"""
Content Store adapters for TranscriptVault.

Immutable blob put/get/delete against an object store. ``S3ContentStore``
talks to any S3-compatible service through boto3 (blocking calls are run
in a worker thread); ``InMemoryContentStore`` keeps blobs in a dict for
local development and tests. Both are write-once per key and treat
deleting an absent key as success.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from urllib.parse import quote

import structlog
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    ReadTimeoutError,
)

from storage.errors import ContentStoreError, StoreErrorKind
from tv_common.metrics import observe_store_call
from tv_common.models import TranscriptFormat
from tv_common.utils import utc_now

logger = structlog.get_logger(__name__)

CONTENT_TYPES: dict[TranscriptFormat, str] = {
    TranscriptFormat.JSON: "application/json",
    TranscriptFormat.TEXT: "text/plain",
    TranscriptFormat.SRT: "text/srt",
    TranscriptFormat.VTT: "text/vtt",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"

_NOT_FOUND_CODES = frozenset({"NoSuchKey", "NoSuchBucket", "NotFound", "404"})
_UNAUTHORIZED_CODES = frozenset({
    "AccessDenied",
    "InvalidAccessKeyId",
    "SignatureDoesNotMatch",
    "ExpiredToken",
    "InvalidToken",
    "AllAccessDisabled",
    "403",
})
_QUOTA_CODES = frozenset({"QuotaExceeded", "EntityTooLarge", "StorageQuotaExceeded"})
_UNAVAILABLE_CODES = frozenset({
    "ServiceUnavailable",
    "SlowDown",
    "InternalError",
    "RequestTimeout",
    "503",
    "500",
})


def classify_s3_error(exc: Exception) -> StoreErrorKind:
    """Map a botocore exception onto a ``StoreErrorKind``."""
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        code = str(error.get("Code", ""))
        if code in _NOT_FOUND_CODES:
            return StoreErrorKind.NOT_FOUND
        if code in _UNAUTHORIZED_CODES:
            return StoreErrorKind.UNAUTHORIZED
        if code in _QUOTA_CODES:
            return StoreErrorKind.QUOTA_EXCEEDED
        if code in _UNAVAILABLE_CODES:
            return StoreErrorKind.UNAVAILABLE
        return StoreErrorKind.UNKNOWN
    if isinstance(exc, NoCredentialsError):
        return StoreErrorKind.UNAUTHORIZED
    if isinstance(exc, (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError)):
        return StoreErrorKind.UNAVAILABLE
    return StoreErrorKind.UNKNOWN


@dataclass(frozen=True, slots=True)
class BlobInfo:
    """Listing entry for a stored blob."""

    key: str
    size: int
    last_modified: datetime


class ContentStore(ABC):
    """Interface of the blob store holding transcript content."""

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str = DEFAULT_CONTENT_TYPE) -> str:
        """Write *data* under a fresh *key* and return its retrieval URL."""

    @abstractmethod
    async def get(self, key: str) -> bytes:
        """Return the bytes stored under *key*."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove *key*; absent keys are not an error."""

    @abstractmethod
    def url_for(self, key: str) -> str:
        """Return the retrieval URL for *key*."""

    @abstractmethod
    async def list_blobs(self, prefix: str) -> list[BlobInfo]:
        """List every blob whose key starts with *prefix*."""

    @abstractmethod
    async def ping(self) -> bool:
        """Return ``True`` when the store is reachable."""


class S3ContentStore(ContentStore):
    """Content store backed by an S3-compatible bucket.

    Parameters
    ----------
    client:
        A boto3 S3 client.
    bucket:
        Bucket holding transcript blobs.
    public_base_url:
        Base for retrieval URLs; ``s3://bucket/key`` is used when empty.
    cache_control:
        ``Cache-Control`` stored with each object.
    """

    def __init__(
        self,
        client: Any,
        bucket: str,
        *,
        public_base_url: str = "",
        cache_control: str = "max-age=3600",
    ) -> None:
        self._client = client
        self._bucket = bucket
        self._public_base_url = public_base_url.rstrip("/")
        self._cache_control = cache_control

    def url_for(self, key: str) -> str:
        if self._public_base_url:
            return f"{self._public_base_url}/{quote(key)}"
        return f"s3://{self._bucket}/{key}"

    def _wrap(self, exc: Exception, operation: str, key: str) -> ContentStoreError:
        return ContentStoreError(
            f"Content store {operation} failed for {key!r}: {exc}",
            kind=classify_s3_error(exc),
            operation=operation,
        )

    async def put(self, key: str, data: bytes, content_type: str = DEFAULT_CONTENT_TYPE) -> str:
        try:
            with observe_store_call("content", "put"):
                await asyncio.to_thread(
                    self._client.put_object,
                    Bucket=self._bucket,
                    Key=key,
                    Body=data,
                    ContentType=content_type,
                    CacheControl=self._cache_control,
                    IfNoneMatch="*",
                )
        except (ClientError, BotoCoreError) as exc:
            raise self._wrap(exc, "put", key) from exc
        logger.debug("blob_written", key=key, size=len(data))
        return self.url_for(key)

    def _read_object(self, key: str) -> bytes:
        response = self._client.get_object(Bucket=self._bucket, Key=key)
        body = response["Body"]
        try:
            return body.read()
        finally:
            body.close()

    async def get(self, key: str) -> bytes:
        try:
            with observe_store_call("content", "get"):
                return await asyncio.to_thread(self._read_object, key)
        except (ClientError, BotoCoreError) as exc:
            raise self._wrap(exc, "get", key) from exc

    async def delete(self, key: str) -> None:
        try:
            with observe_store_call("content", "delete"):
                await asyncio.to_thread(self._client.delete_object, Bucket=self._bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            if classify_s3_error(exc) is StoreErrorKind.NOT_FOUND:
                logger.debug("blob_already_absent", key=key)
                return
            raise self._wrap(exc, "delete", key) from exc
        logger.debug("blob_deleted", key=key)

    def _list(self, prefix: str) -> list[BlobInfo]:
        paginator = self._client.get_paginator("list_objects_v2")
        blobs: list[BlobInfo] = []
        for page in paginator.paginate(Bucket=self._bucket, Prefix=prefix):
            for obj in page.get("Contents", []):
                blobs.append(
                    BlobInfo(key=obj["Key"], size=obj["Size"], last_modified=obj["LastModified"]),
                )
        return blobs

    async def list_blobs(self, prefix: str) -> list[BlobInfo]:
        try:
            with observe_store_call("content", "list"):
                return await asyncio.to_thread(self._list, prefix)
        except (ClientError, BotoCoreError) as exc:
            raise self._wrap(exc, "list", prefix) from exc

    async def ping(self) -> bool:
        try:
            await asyncio.to_thread(self._client.head_bucket, Bucket=self._bucket)
            return True
        except (ClientError, BotoCoreError):
            logger.warning("content_store_unreachable", bucket=self._bucket)
            return False


@dataclass(slots=True)
class _StoredBlob:
    data: bytes
    content_type: str
    created_at: datetime


class InMemoryContentStore(ContentStore):
    """Process-local content store with S3 write-once semantics."""

    def __init__(self, base_url: str = "memory://transcripts") -> None:
        self._base_url = base_url.rstrip("/")
        self._blobs: dict[str, _StoredBlob] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._blobs

    def __len__(self) -> int:
        return len(self._blobs)

    @property
    def keys(self) -> list[str]:
        return sorted(self._blobs)

    def content_type_of(self, key: str) -> str:
        return self._blobs[key].content_type

    def url_for(self, key: str) -> str:
        return f"{self._base_url}/{key}"

    async def put(self, key: str, data: bytes, content_type: str = DEFAULT_CONTENT_TYPE) -> str:
        if key in self._blobs:
            raise ContentStoreError(
                f"Blob {key!r} already exists",
                kind=StoreErrorKind.UNKNOWN,
                operation="put",
            )
        self._blobs[key] = _StoredBlob(data=bytes(data), content_type=content_type, created_at=utc_now())
        return self.url_for(key)

    async def get(self, key: str) -> bytes:
        blob = self._blobs.get(key)
        if blob is None:
            raise ContentStoreError(
                f"Blob {key!r} not found",
                kind=StoreErrorKind.NOT_FOUND,
                operation="get",
            )
        return blob.data

    async def delete(self, key: str) -> None:
        self._blobs.pop(key, None)

    async def list_blobs(self, prefix: str) -> list[BlobInfo]:
        return [
            BlobInfo(key=key, size=len(blob.data), last_modified=blob.created_at)
            for key, blob in sorted(self._blobs.items())
            if key.startswith(prefix)
        ]

    async def ping(self) -> bool:
        return True
