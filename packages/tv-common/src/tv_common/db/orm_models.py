"""
SQLAlchemy ORM models for TranscriptVault.

Defines the ``transcript_metadata`` table mapping using SQLAlchemy 2.0
declarative style with ``Mapped`` / ``mapped_column``. One row per
``(source_id, version)``; the content itself lives in the object store.
"""

from __future__ import annotations

import datetime as dt
import uuid

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID as PG_UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utc_now() -> dt.datetime:
    """Return timezone-aware UTC now for server defaults."""
    return dt.datetime.now(dt.timezone.utc)


# ── Base class ──


class Base(DeclarativeBase):
    """Declarative base for all TranscriptVault ORM models."""


# ── Enum values (mirroring Pydantic enums) ──

TRANSCRIPT_FORMAT_ENUM = Enum(
    "json", "text", "srt", "vtt",
    name="transcript_format_enum",
)
PROCESSING_STATUS_ENUM = Enum(
    "pending", "processed", "failed",
    name="processing_status_enum",
)

SOURCE_VERSION_CONSTRAINT = "uq_transcript_metadata_source_version"


# ── ORM models ──


class TranscriptMetadataORM(Base):
    """ORM model for the ``transcript_metadata`` table."""

    __tablename__ = "transcript_metadata"
    __table_args__ = (
        UniqueConstraint("source_id", "version", name=SOURCE_VERSION_CONSTRAINT),
        CheckConstraint("version >= 1", name="ck_transcript_metadata_version_positive"),
        Index("ix_transcript_metadata_processing_status", "processing_status"),
        Index("ix_transcript_metadata_uploaded_at", "uploaded_at"),
        Index("ix_transcript_metadata_speakers", "speakers", postgresql_using="gin"),
        Index("ix_transcript_metadata_tags", "tags", postgresql_using="gin"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    source_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    speakers: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    format: Mapped[str] = mapped_column(TRANSCRIPT_FORMAT_ENUM, nullable=False)
    tags: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    processing_status: Mapped[str] = mapped_column(
        PROCESSING_STATUS_ENUM, nullable=False, default="pending",
    )
    uploaded_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utc_now,
    )
    processing_completed_at: Mapped[dt.datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    blob_key: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
