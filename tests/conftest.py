"""Shared fixtures: an in-memory SQLite store per test and user-bound repositories."""

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from readinglists.infrastructure.persistence.connection_provider import (
    DatabaseConnectionProvider,
)
from readinglists.infrastructure.persistence.database.db_connection import (
    configure_sqlite_engine,
    create_session_factory,
)
from readinglists.infrastructure.persistence.database.db_models import init_db
from readinglists.infrastructure.persistence.repositories.factories import (
    new_repository,
)
from tests.fixtures.clock import FakeClock

USER_ID = 1
OTHER_USER_ID = 2


@pytest.fixture
async def db_engine():
    """Fresh in-memory database with the schema created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    configure_sqlite_engine(engine)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture
async def connection_provider(session_factory):
    """Provider without a replica; reads go through the write session."""
    provider = DatabaseConnectionProvider(
        session_factory,
        replication_poll_interval=0,
    )
    yield provider
    await provider.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_repository(connection_provider, clock):
    """Build repositories sharing one provider, bound to any user id."""

    def _make(user_id, **kwargs):
        return new_repository(
            user_id,
            connection_provider.get_write_session(),
            connection_provider.get_read_session(),
            connection_provider,
            clock=clock,
            **kwargs,
        )

    return _make


@pytest.fixture
def repo(make_repository):
    return make_repository(USER_ID)


@pytest.fixture
def other_repo(make_repository):
    return make_repository(OTHER_USER_ID)


@pytest.fixture
def system_repo(make_repository):
    """Repository with the system identity, for purge operations."""
    return make_repository(None)


@pytest.fixture
async def default_list(repo):
    """The default list of an already set up user."""
    return await repo.setup_for_user()
