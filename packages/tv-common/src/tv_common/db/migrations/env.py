"""
Alembic environment for the TranscriptVault metadata index.

The database URL comes from ``TV_DB_URI`` (via ``Settings``); the
``sqlalchemy.url`` entry in ``alembic.ini`` is used only when settings
leave it empty. Online migrations run over an asyncpg engine.
"""

from __future__ import annotations

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from tv_common.config import get_settings
from tv_common.db.orm_models import Base

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _database_url() -> str:
    return get_settings().db_uri or config.get_main_option("sqlalchemy.url", "")


def _configure(**kwargs) -> None:  # type: ignore[no-untyped-def]
    # compare_type so JSONB / enum column changes show up in autogenerate.
    context.configure(target_metadata=target_metadata, compare_type=True, **kwargs)


def _migrate_offline() -> None:
    """Emit the migration SQL to stdout without connecting."""
    _configure(url=_database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection: Connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def _migrate_online() -> None:
    engine = create_async_engine(_database_url(), poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    _migrate_offline()
else:
    asyncio.run(_migrate_online())
