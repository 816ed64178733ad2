"""
Database connection and ORM utilities for TranscriptVault.

This package provides async database connection management via SQLAlchemy,
the ``transcript_metadata`` table mapping, and Alembic migration support.
"""

from tv_common.db.connection import (
    build_engine,
    build_session_factory,
)
from tv_common.db.orm_models import (
    SOURCE_VERSION_CONSTRAINT,
    Base,
    TranscriptMetadataORM,
)

__all__ = [
    "SOURCE_VERSION_CONSTRAINT",
    "Base",
    "TranscriptMetadataORM",
    "build_engine",
    "build_session_factory",
]
