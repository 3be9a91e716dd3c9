"""Repository factory functions.

These factory functions handle session-aware repository creation while keeping
session management concerns in the infrastructure layer. Application layer
use cases depend only on domain protocols, not these factory functions.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from readinglists.domain.repositories.interfaces import (
    Clock,
    ConnectionProviderProtocol,
    ReadingListRepositoryProtocol,
    UnitOfWorkProtocol,
)
from readinglists.infrastructure.persistence.connection_provider import (
    DatabaseConnectionProvider,
)
from readinglists.infrastructure.persistence.database.db_connection import (
    get_replica_session_factory,
    get_session_factory,
)
from readinglists.infrastructure.persistence.repositories.reading_list.core import (
    PURGE_BATCH_SIZE,
    ReadingListRepository,
)
from readinglists.infrastructure.persistence.unit_of_work import DatabaseUnitOfWork


def new_repository(
    user_id: int | None,
    write_session: AsyncSession,
    read_session: AsyncSession,
    connection_provider: ConnectionProviderProtocol,
    *,
    clock: Clock | None = None,
    logger: Any = None,
    purge_batch_size: int = PURGE_BATCH_SIZE,
) -> ReadingListRepositoryProtocol:
    """Get a reading list repository for one user.

    Args:
        user_id: Owner the repository is scoped to; None for purge-only use
        write_session: Session on the primary database
        read_session: Session on a replica, or the write session
        connection_provider: Provider used to pace purges against replicas
        clock: Optional time source
        logger: Optional loguru logger
        purge_batch_size: Rows handled per purge batch
    """
    return ReadingListRepository(
        user_id,
        write_session,
        read_session,
        connection_provider,
        clock=clock,
        logger=logger,
        purge_batch_size=purge_batch_size,
    )


def get_connection_provider() -> DatabaseConnectionProvider:
    """Get a connection provider over the configured primary and replica."""
    return DatabaseConnectionProvider(
        get_session_factory(),
        get_replica_session_factory(),
    )


def get_unit_of_work(clock: Clock | None = None) -> UnitOfWorkProtocol:
    """Get unit of work for transaction boundary management."""
    return DatabaseUnitOfWork(get_connection_provider(), clock=clock)
