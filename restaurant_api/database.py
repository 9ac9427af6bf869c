"""
Database Connection Module
Handles the store connection using the SQLAlchemy async engine.

PostgreSQL (psycopg) is the production backend; SQLite (aiosqlite) is
accepted for local runs and the test suite.
"""

import logging
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from restaurant_api.core.config import get_settings

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores REFERENCES clauses unless asked per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def is_sqlite_memory_url(database_url: str) -> bool:
    """True for SQLite URLs that point at an in-memory database."""
    url = make_url(database_url)
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    SQLite engines enforce foreign keys. In-memory SQLite shares one
    connection so the database survives across sessions; file databases
    keep a regular pool so each session gets its own connection.
    """
    settings = get_settings()

    if make_url(database_url).get_backend_name() == "sqlite":
        if is_sqlite_memory_url(database_url):
            engine = create_async_engine(database_url, echo=echo, poolclass=StaticPool)
        else:
            engine = create_async_engine(database_url, echo=echo)
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_async_engine(
        database_url,
        echo=echo,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
    )


def build_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory; objects stay readable after commit."""
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
    )


_settings = get_settings()

# Process-wide engine and session factory
engine = build_engine(_settings.database_url, echo=_settings.database_echo)
async_session_maker = build_session_maker(engine)


# Base class for all our models
class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    Dependency injection for FastAPI routes.
    Yields a database session and ensures cleanup.
    """
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db(bind: AsyncEngine = engine) -> None:
    """
    Create all tables in the database.
    Called once at application startup.
    """
    # Register the mapped classes on Base.metadata
    from restaurant_api import models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")
