"""
Lemonade Backend: Database Engine & Unit of Work
==================================================

What:  Async SQLAlchemy engine factory, session factory, declarative base and
       the `session_scope()` unit of work used by every service call.
How:   One engine per process with connection pooling. Each public service
       operation opens its own session through `session_scope()`, which
       commits on success, rolls back on any error and always closes.
Who:   Services (catalog, price matrix, order processor), the application
       lifespan, the health check and Alembic.

Connection Pooling (server databases):
    pool_size=20, max_overflow=10: at most 30 connections per process
    pool_pre_ping:  validates connections before use
    pool_recycle:   recycles connections every hour

SQLite:
    Used by the test suite through aiosqlite. Pool options are skipped and
    every new connection runs PRAGMA foreign_keys=ON, otherwise SQLite would
    silently ignore the cascade and restrict rules declared on the models.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from lemonade.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares one metadata object between the application, the test fixtures
    (`Base.metadata.create_all`) and Alembic autogenerate.
    """
    pass


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine configured for the given URL.

    Args:
        database_url: Async SQLAlchemy URL (postgresql+asyncpg://, sqlite+aiosqlite://)
        echo: Log every SQL statement (development only)

    Returns:
        AsyncEngine with pooling for server databases, or with foreign key
        enforcement switched on for SQLite.
    """
    if database_url.startswith("sqlite"):
        engine = create_async_engine(database_url, echo=echo)
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_async_engine(
        database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
        echo=echo,
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to `bind`.

    expire_on_commit=False keeps loaded attributes readable after commit, so
    services can build response models from objects after their transaction
    has closed.
    """
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


# ── Process-wide engine & factory ─────────────────────────────────────────
engine = build_engine(settings.database_url, echo=settings.log_level == "DEBUG")
async_session_factory = build_session_factory(engine)


# ── Unit of Work ──────────────────────────────────────────────────────────
@asynccontextmanager
async def session_scope(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """
    Provide one transactional session for a single service operation.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the caller (queries, adds, flushes)
        3. On success: commits the transaction
        4. On error: rolls back every staged write, then re-raises
        5. Always: closes the session (returns the connection to the pool)

    Example:
        async with session_scope(factory) as session:
            session.add(BeverageType(name="Lemonade"))
            await session.flush()
    """
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def create_schema(bind: AsyncEngine) -> None:
    """Create every table known to `Base.metadata` (no-op for existing tables)."""
    # Imported for the side effect of registering the tables on Base.metadata
    from lemonade import models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ensured (%d tables)", len(Base.metadata.tables))


async def dispose_engine() -> None:
    """Close all pooled connections. Called on application shutdown."""
    await engine.dispose()
