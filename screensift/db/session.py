"""Async engine, session factory and schema bootstrap for the catalog database."""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

from screensift.config import settings

# Register table models on SQLModel.metadata
from screensift.db import models  # noqa: F401


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    """Turn on FK enforcement so ON DELETE CASCADE applies on SQLite."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, echo: bool = False, **kwargs: Any) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    PostgreSQL engines get a connection pool; SQLite engines get foreign key
    enforcement on every new connection.

    Args:
        database_url: SQLAlchemy async database URL
        echo: Echo SQL queries to console
        **kwargs: Extra keyword arguments for create_async_engine

    Returns:
        Configured AsyncEngine
    """
    is_sqlite = database_url.startswith("sqlite")
    if not is_sqlite:
        kwargs.setdefault("pool_size", 10)
        kwargs.setdefault("max_overflow", 20)
        kwargs.setdefault("pool_pre_ping", True)

    async_engine = create_async_engine(database_url, echo=echo, **kwargs)

    if is_sqlite:
        event.listen(async_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    return async_engine


def build_session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to an engine."""
    return async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )


engine = build_engine(settings.database_url, echo=settings.database_echo)

AsyncSessionLocal = build_session_factory(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """One session per unit of work: commit if the caller succeeds, roll back if it raises."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        else:
            await session.commit()


async def init_db(async_engine: AsyncEngine | None = None) -> None:
    """
    Create any missing tables on ``async_engine`` (the global engine by default).

    Meant for development and tests; deployed databases are migrated with Alembic.
    """
    async with (async_engine or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def close_db() -> None:
    """Dispose of the global engine's connection pool."""
    await engine.dispose()
