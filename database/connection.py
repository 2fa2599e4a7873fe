"""
Async database engine, session factory and unit-of-work helper.

The engine is created lazily from settings. Services never reach for the
module-level factory themselves: it is passed in (or defaulted) at
construction so tests can inject a factory bound to their own database.

Isolation model:
- PostgreSQL (asyncpg): READ COMMITTED plus row locks taken with
  SELECT ... FOR UPDATE. statement_timeout/lock_timeout bound how long a
  transaction may wait before it aborts as a whole.
- SQLite (aiosqlite): every transaction starts with BEGIN IMMEDIATE, which
  takes the database write lock up front and serializes writers.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from shared.config import get_settings
from shared.exceptions import StorageError

logger = logging.getLogger(__name__)


def _install_sqlite_locking(engine: AsyncEngine) -> None:
    """Make pysqlite/aiosqlite emit BEGIN IMMEDIATE and enforce foreign keys."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Disable the driver's own deferred BEGIN; we emit ours below
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_engine_from_url(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Build an AsyncEngine with the locking behaviour the swap protocol needs.

    Args:
        database_url: SQLAlchemy URL (postgresql+asyncpg://... or sqlite+aiosqlite://...)
        echo: Log every SQL statement

    Returns:
        Configured AsyncEngine
    """
    settings = get_settings()
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        engine = create_async_engine(
            url,
            echo=echo,
            connect_args={"timeout": settings.DB_LOCK_TIMEOUT_MS / 1000},
        )
        _install_sqlite_locking(engine)
    else:
        engine = create_async_engine(
            url,
            echo=echo,
            pool_pre_ping=True,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            isolation_level="READ COMMITTED",
            connect_args={
                "server_settings": {
                    "statement_timeout": str(settings.DB_STATEMENT_TIMEOUT_MS),
                    "lock_timeout": str(settings.DB_LOCK_TIMEOUT_MS),
                }
            },
        )

    logger.info(f"Database engine created: backend={url.get_backend_name()}")
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory used by every service. Objects stay readable after commit."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


_settings = get_settings()
engine = create_engine_from_url(_settings.DATABASE_URL, echo=_settings.DB_ECHO)
AsyncSessionLocal = create_session_factory(engine)


@asynccontextmanager
async def get_async_session() -> AsyncIterator[AsyncSession]:
    """Plain session from the default factory (caller manages the transaction)."""
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def transaction(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncIterator[AsyncSession]:
    """
    Unit of work: one session, one transaction, all-or-nothing.

    Commits when the block exits normally and rolls back on any exception.
    Domain errors raised inside the block propagate unchanged after the
    rollback; SQLAlchemy failures (including lock/statement timeouts) are
    re-raised as StorageError so callers can tell them apart.

    Example:
        >>> async with transaction(factory) as session:
        ...     event = await repo.get_for_update(session, event_id)
        ...     event.status = EventStatus.SWAPPABLE
    """
    factory = session_factory or AsyncSessionLocal
    try:
        async with factory() as session:
            async with session.begin():
                yield session
    except SQLAlchemyError as e:
        logger.error(f"Transaction aborted by storage: {e}", exc_info=True)
        raise StorageError("The operation could not be completed, please retry") from e
