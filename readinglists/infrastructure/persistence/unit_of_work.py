"""Database Unit of Work implementation for transaction boundary management.

This module provides the concrete implementation of the UnitOfWork pattern,
handing out reading list repositories that share one primary transaction
and one replica session.
"""

from typing import Self

from readinglists.config import settings
from readinglists.domain.repositories.interfaces import (
    Clock,
    ReadingListRepositoryProtocol,
)
from readinglists.infrastructure.persistence.connection_provider import (
    DatabaseConnectionProvider,
)
from readinglists.infrastructure.persistence.repositories.reading_list.core import (
    ReadingListRepository,
)


class DatabaseUnitOfWork:
    """Database implementation of the Unit of Work pattern.

    The unit of work automatically commits on successful exit or rolls back on
    exceptions, and closes its sessions either way. Explicit commit/rollback
    is available for callers that need it.
    """

    def __init__(
        self,
        connection_provider: DatabaseConnectionProvider,
        *,
        clock: Clock | None = None,
    ) -> None:
        """Initialize with a connection provider.

        Args:
            connection_provider: Source of primary and replica sessions
            clock: Time source passed to repositories
        """
        self._provider = connection_provider
        self._clock = clock
        self._committed = False

    async def __aenter__(self) -> Self:
        """Enter async context manager."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit async context manager with automatic commit/rollback."""
        try:
            if exc_type is not None:
                await self.rollback()
            elif not self._committed:
                await self.commit()
        finally:
            await self._provider.close()

    async def commit(self) -> None:
        """Explicitly commit the current transaction."""
        await self._provider.commit()
        self._committed = True

    async def rollback(self) -> None:
        """Explicitly rollback the current transaction."""
        await self._provider.rollback()

    def get_reading_list_repository(
        self, user_id: int | None = None
    ) -> ReadingListRepositoryProtocol:
        """Get a reading list repository using this unit of work's sessions."""
        return ReadingListRepository(
            user_id,
            self._provider.get_write_session(),
            self._provider.get_read_session(),
            self._provider,
            clock=self._clock,
            purge_batch_size=settings.readinglists.purge_batch_size,
        )
