"""
Async database engine and per-request sessions.

One engine per process, created on first use from DATABASE_URL and disposed
at application shutdown. Sessions do not expire objects on commit: an Asset
is still read after its save (response rendering, merge logging).

CHANGELOG:
- 2026-10-09: Add dispose_engine for the lifespan shutdown (STORY-108)
- 2026-10-05: Initial creation (STORY-101)
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from asset_telemetry.config import get_settings

_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Return the process-wide session factory, creating the engine if needed."""
    global _engine, _sessionmaker  # noqa: PLW0603
    if _sessionmaker is None:
        _engine = create_async_engine(get_settings().database_url, pool_pre_ping=True)
        _sessionmaker = async_sessionmaker(_engine, expire_on_commit=False)
    return _sessionmaker


async def dispose_engine() -> None:
    """Close pooled connections; the next session recreates the engine."""
    global _engine, _sessionmaker  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _sessionmaker = None


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield one session for a request.

    Anything not committed when the request ends is rolled back on close.
    """
    async with get_sessionmaker()() as session:
        yield session
