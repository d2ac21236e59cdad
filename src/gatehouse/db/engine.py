"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.

Two session sources:
- get_db(): one session per request, closed when the request ends
- get_session_factory(): the factory itself, for background jobs that
  outlive the request (token recording, user deletion) and must open
  their own session
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from gatehouse.config import settings

# Connection pool: min 5, max 20 connections on Postgres.
# echo=True in dev to see SQL queries.
_pool_options = (
    {} if settings.database_url.startswith("sqlite")
    else {"pool_size": 5, "max_overflow": 15}
)

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    **_pool_options,
)

# Session factory — each request gets its own session.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """FastAPI dependency — yields a session per request, auto-closes."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """FastAPI dependency — the factory used by background jobs."""
    return async_session_factory
