"""SQLAlchemy database configuration and connection management.

This module is responsible for:
- Engine creation and configuration for the primary and optional replica
- SQLite connection tuning and savepoint support
- Session factories for the primary and the replica
"""

from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    async_sessionmaker,
    create_async_engine,
)

from readinglists.config import get_logger, resolve_database_url, settings

# Create module logger
logger = get_logger(__name__)


def configure_sqlite_engine(engine: AsyncEngine) -> None:
    """Install SQLite connection listeners on an engine.

    The driver's own transaction handling is disabled and BEGIN is emitted
    explicitly, which makes SAVEPOINT (``session.begin_nested()``) behave.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, _):  # type: ignore # pragma: no cover
        """Set SQLite PRAGMAs on connection creation."""
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA busy_timeout = 30000")  # 30 second timeout
        cursor.execute("PRAGMA journal_mode = WAL")  # Write-ahead logging
        cursor.execute("PRAGMA synchronous = NORMAL")  # Balanced safety/performance
        cursor.execute("PRAGMA foreign_keys = ON")  # Enforce foreign keys
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _do_begin(conn):  # type: ignore # pragma: no cover
        """Emit BEGIN ourselves now that the driver no longer does."""
        conn.exec_driver_sql("BEGIN")


def create_db_engine(connection_string: str | None = None) -> AsyncEngine:
    """Create an async SQLAlchemy engine.

    Args:
        connection_string: Database URL (defaults to the resolved primary URL)

    Returns:
        Configured async engine
    """
    db_url = connection_string or resolve_database_url()
    url = make_url(db_url)
    is_sqlite = url.get_backend_name() == "sqlite"

    engine_kwargs: dict[str, Any] = {
        "echo": settings.database.echo,
        "pool_pre_ping": True,
    }
    if is_sqlite:
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        engine_kwargs["connect_args"] = {"check_same_thread": False, "timeout": 120.0}
    else:
        engine_kwargs.update(
            pool_size=settings.database.pool_size,
            max_overflow=settings.database.max_overflow,
            pool_timeout=settings.database.pool_timeout,
            pool_recycle=settings.database.pool_recycle,
        )

    engine = create_async_engine(db_url, **engine_kwargs)

    if is_sqlite:
        configure_sqlite_engine(engine)

    logger.info(
        "Created database engine",
        backend=url.get_backend_name(),
    )
    return engine


def create_session_factory(engine: AsyncEngine | None = None) -> async_sessionmaker:
    """Create an async session factory for the given engine.

    Args:
        engine: Optional engine (uses global engine if None)

    Returns:
        Async session factory for creating properly configured sessions
    """
    return async_sessionmaker(
        bind=engine or get_engine(),
        expire_on_commit=False,  # Important: Don't expire objects after commit
        autoflush=True,
        autocommit=False,  # Always work in transactions
    )


# Global engine and session factory singletons
_engine: AsyncEngine | None = None
_replica_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker | None = None
_replica_session_factory: async_sessionmaker | None = None


def get_engine() -> AsyncEngine:
    """Get or create the global primary engine singleton."""
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def get_replica_engine() -> AsyncEngine | None:
    """Get or create the global replica engine, or None without a replica."""
    global _replica_engine
    if _replica_engine is None:
        replica_url = resolve_database_url(replica=True)
        if replica_url is None:
            return None
        _replica_engine = create_db_engine(replica_url)
    return _replica_engine


def get_session_factory() -> async_sessionmaker:
    """Get or create the global primary session factory singleton."""
    global _session_factory
    if _session_factory is None:
        _session_factory = create_session_factory(get_engine())
    return _session_factory


def get_replica_session_factory() -> async_sessionmaker | None:
    """Get or create the global replica session factory, or None without a replica."""
    global _replica_session_factory
    if _replica_session_factory is None:
        replica_engine = get_replica_engine()
        if replica_engine is None:
            return None
        _replica_session_factory = create_session_factory(replica_engine)
    return _replica_session_factory


async def dispose_engines() -> None:
    """Dispose global engines and forget the singletons."""
    global _engine, _replica_engine, _session_factory, _replica_session_factory
    for engine in (_engine, _replica_engine):
        if engine is not None:
            await engine.dispose()
    _engine = _replica_engine = None
    _session_factory = _replica_session_factory = None

