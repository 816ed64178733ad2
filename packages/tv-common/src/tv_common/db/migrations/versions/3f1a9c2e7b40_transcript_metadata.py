"""transcript metadata

Revision ID: 3f1a9c2e7b40
Revises:
Create Date: 2026-10-12 09:14:03.512771

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f1a9c2e7b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

transcript_format_enum = postgresql.ENUM(
    "json", "text", "srt", "vtt",
    name="transcript_format_enum",
    create_type=False,
)
processing_status_enum = postgresql.ENUM(
    "pending", "processed", "failed",
    name="processing_status_enum",
    create_type=False,
)


def upgrade() -> None:
    transcript_format_enum.create(op.get_bind(), checkfirst=True)
    processing_status_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "transcript_metadata",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("source_id", sa.String(255), nullable=False),
        sa.Column("version", sa.Integer, nullable=False),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("speakers", postgresql.JSONB, nullable=False, server_default=sa.text("'[]'")),
        sa.Column("format", transcript_format_enum, nullable=False),
        sa.Column("tags", postgresql.JSONB, nullable=False, server_default=sa.text("'[]'")),
        sa.Column("processing_status", processing_status_enum, nullable=False, server_default="pending"),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("processing_completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("blob_key", sa.Text, nullable=False, unique=True),
        sa.Column("url", sa.Text, nullable=False),
        sa.Column("size", sa.BigInteger, nullable=False, server_default="0"),
        sa.CheckConstraint("version >= 1", name="ck_transcript_metadata_version_positive"),
        sa.UniqueConstraint("source_id", "version", name="uq_transcript_metadata_source_version"),
    )
    op.create_index("ix_transcript_metadata_source_id", "transcript_metadata", ["source_id"])
    op.create_index("ix_transcript_metadata_processing_status", "transcript_metadata", ["processing_status"])
    op.create_index("ix_transcript_metadata_uploaded_at", "transcript_metadata", ["uploaded_at"])
    op.create_index(
        "ix_transcript_metadata_speakers",
        "transcript_metadata",
        ["speakers"],
        postgresql_using="gin",
    )
    op.create_index(
        "ix_transcript_metadata_tags",
        "transcript_metadata",
        ["tags"],
        postgresql_using="gin",
    )


def downgrade() -> None:
    op.drop_index("ix_transcript_metadata_tags", table_name="transcript_metadata")
    op.drop_index("ix_transcript_metadata_speakers", table_name="transcript_metadata")
    op.drop_index("ix_transcript_metadata_uploaded_at", table_name="transcript_metadata")
    op.drop_index("ix_transcript_metadata_processing_status", table_name="transcript_metadata")
    op.drop_index("ix_transcript_metadata_source_id", table_name="transcript_metadata")
    op.drop_table("transcript_metadata")

    processing_status_enum.drop(op.get_bind(), checkfirst=True)
    transcript_format_enum.drop(op.get_bind(), checkfirst=True)
