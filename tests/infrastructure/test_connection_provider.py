"""Tests for DatabaseConnectionProvider session handling and replication waits."""

from unittest.mock import AsyncMock, Mock

import pytest

from readinglists.infrastructure.persistence.connection_provider import (
    DatabaseConnectionProvider,
)


def make_session(dialect: str = "sqlite") -> AsyncMock:
    session = AsyncMock()
    bind = Mock()
    bind.dialect.name = dialect
    session.get_bind = Mock(return_value=bind)
    return session


@pytest.fixture
def write_session():
    return make_session()


@pytest.fixture
def read_session():
    return make_session()


@pytest.fixture
def sleep(monkeypatch):
    fake_sleep = AsyncMock()
    monkeypatch.setattr(
        "readinglists.infrastructure.persistence.connection_provider.asyncio.sleep",
        fake_sleep,
    )
    return fake_sleep


class TestSessions:
    """Test lazy session creation and fallback."""

    def test_sessions_are_created_once(self, write_session, read_session):
        write_factory = Mock(return_value=write_session)
        read_factory = Mock(return_value=read_session)
        provider = DatabaseConnectionProvider(write_factory, read_factory)

        assert provider.has_replica is True
        assert provider.get_write_session() is write_session
        assert provider.get_write_session() is write_session
        assert provider.get_read_session() is read_session
        write_factory.assert_called_once_with()
        read_factory.assert_called_once_with()

    def test_read_falls_back_to_write_session(self, write_session):
        provider = DatabaseConnectionProvider(Mock(return_value=write_session))

        assert provider.has_replica is False
        assert provider.get_read_session() is write_session

    @pytest.mark.asyncio
    async def test_commit_and_rollback_without_session(self):
        write_factory = Mock()
        provider = DatabaseConnectionProvider(write_factory)

        await provider.commit()
        await provider.rollback()
        await provider.close()

        write_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_close_closes_and_forgets_sessions(self, write_session, read_session):
        provider = DatabaseConnectionProvider(
            Mock(side_effect=[write_session, make_session()]),
            Mock(return_value=read_session),
        )
        provider.get_write_session()
        provider.get_read_session()

        await provider.close()

        write_session.close.assert_awaited_once()
        read_session.close.assert_awaited_once()
        assert provider.get_write_session() is not write_session


class TestWaitForReplication:
    """Test the pause between purge batches."""

    @pytest.mark.asyncio
    async def test_without_replica_only_commits(self, write_session, sleep):
        provider = DatabaseConnectionProvider(Mock(return_value=write_session))

        await provider.wait_for_replication()

        write_session.commit.assert_awaited_once()
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_postgres_replica_sleeps_one_interval(
        self, write_session, read_session, sleep
    ):
        provider = DatabaseConnectionProvider(
            Mock(return_value=write_session),
            Mock(return_value=read_session),
            replication_poll_interval=0.25,
        )

        await provider.wait_for_replication()

        write_session.commit.assert_awaited()
        sleep.assert_awaited_once_with(0.25)
        read_session.scalar.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_postgres_polls_until_replica_caught_up(self, read_session, sleep):
        write_session = make_session("postgresql")
        write_session.scalar.return_value = "0/16B3748"
        read_session.scalar.side_effect = [False, False, True]
        provider = DatabaseConnectionProvider(
            Mock(return_value=write_session),
            Mock(return_value=read_session),
            replication_wait_timeout=60,
            replication_poll_interval=0.01,
        )

        await provider.wait_for_replication()

        assert read_session.scalar.await_count == 3
        assert sleep.await_count == 2
        _, params = read_session.scalar.await_args.args
        assert params == {"lsn": "0/16B3748"}

    @pytest.mark.asyncio
    async def test_postgres_times_out(self, read_session, sleep):
        write_session = make_session("postgresql")
        write_session.scalar.return_value = "0/16B3748"
        read_session.scalar.return_value = False
        provider = DatabaseConnectionProvider(
            Mock(return_value=write_session),
            Mock(return_value=read_session),
            replication_wait_timeout=0,
        )

        with pytest.raises(TimeoutError):
            await provider.wait_for_replication()
