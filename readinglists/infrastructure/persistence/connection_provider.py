"""Primary/replica session provider with replication pacing."""

import asyncio

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from readinglists.config import get_logger, settings

logger = get_logger(__name__)


class DatabaseConnectionProvider:
    """Lazily opens one primary and one replica session for a unit of work.

    Without a replica the read session is the write session, so reads see
    the caller's own uncommitted writes.
    """

    def __init__(
        self,
        write_session_factory: async_sessionmaker,
        read_session_factory: async_sessionmaker | None = None,
        *,
        replication_wait_timeout: float | None = None,
        replication_poll_interval: float | None = None,
    ) -> None:
        self._write_session_factory = write_session_factory
        self._read_session_factory = read_session_factory
        self.replication_wait_timeout = (
            replication_wait_timeout
            if replication_wait_timeout is not None
            else settings.database.replication_wait_timeout
        )
        self.replication_poll_interval = (
            replication_poll_interval
            if replication_poll_interval is not None
            else settings.database.replication_poll_interval
        )
        self._write_session: AsyncSession | None = None
        self._read_session: AsyncSession | None = None

    @property
    def has_replica(self) -> bool:
        return self._read_session_factory is not None

    def get_write_session(self) -> AsyncSession:
        """Session bound to the primary database."""
        if self._write_session is None:
            self._write_session = self._write_session_factory()
        return self._write_session

    def get_read_session(self) -> AsyncSession:
        """Session bound to the replica, or the write session without one."""
        if self._read_session_factory is None:
            return self.get_write_session()
        if self._read_session is None:
            self._read_session = self._read_session_factory()
        return self._read_session

    async def wait_for_replication(self) -> None:
        """Commit pending primary writes and wait for the replica to apply them.

        Raises:
            TimeoutError: If the replica does not catch up in time
        """
        write_session = self.get_write_session()
        await write_session.commit()

        if not self.has_replica:
            return

        read_session = self.get_read_session()
        if write_session.get_bind().dialect.name != "postgresql":
            # No portable way to read replica position; pause one interval
            await asyncio.sleep(self.replication_poll_interval)
            return

        target_lsn = await write_session.scalar(text("SELECT pg_current_wal_lsn()"))
        await write_session.commit()

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.replication_wait_timeout
        while True:
            caught_up = await read_session.scalar(
                text("SELECT pg_last_wal_replay_lsn() >= CAST(:lsn AS pg_lsn)"),
                {"lsn": str(target_lsn)},
            )
            await read_session.rollback()
            if caught_up:
                return
            if loop.time() >= deadline:
                logger.warning(
                    "Replica did not reach {lsn} within {timeout}s",
                    lsn=str(target_lsn),
                    timeout=self.replication_wait_timeout,
                )
                raise TimeoutError(
                    f"Replication wait timed out after {self.replication_wait_timeout}s"
                )
            await asyncio.sleep(self.replication_poll_interval)

    async def commit(self) -> None:
        if self._write_session is not None:
            await self._write_session.commit()

    async def rollback(self) -> None:
        if self._write_session is not None:
            await self._write_session.rollback()

    async def close(self) -> None:
        """Close any opened sessions."""
        for session in (self._read_session, self._write_session):
            if session is not None:
                await session.close()
        self._read_session = None
        self._write_session = None
