"""
Alembic environment for the asset telemetry schema.

The database URL always comes from ServiceSettings (DATABASE_URL), never
from alembic.ini. Online migrations run through the asyncpg engine.
TimescaleDB's own catalog objects are excluded from autogenerate.

CHANGELOG:
- 2026-10-05: Initial creation (STORY-101)

TODO:
- None
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from asset_telemetry.config import get_settings
from asset_telemetry.db.models import Base

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

_TIMESCALE_SCHEMAS = {"_timescaledb_catalog", "_timescaledb_internal", "timescaledb_information"}


def _include_object(obj, name, type_, reflected, compare_to) -> bool:
    """Skip objects living in TimescaleDB's internal schemas."""
    schema = getattr(obj, "schema", None)
    return schema not in _TIMESCALE_SCHEMAS


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        include_object=_include_object,
        compare_type=True,
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit the migration SQL to the script output instead of executing it."""
    _configure(
        url=get_settings().database_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _run_with_connection(connection: Connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """Run migrations against the database with a throwaway async engine."""
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = get_settings().database_url
    engine = async_engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_run_with_connection)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
