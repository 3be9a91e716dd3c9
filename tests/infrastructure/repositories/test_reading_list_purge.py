"""Tests for the global maintenance sweeps."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select

from readinglists.domain.entities import PurgeStats
from readinglists.infrastructure.persistence.database.db_models import (
    DBReadingList,
    DBReadingListEntry,
    DBReadingListEntrySortkey,
    DBReadingListSortkey,
)

PROJECT = "en.wikipedia.org"


async def count_rows(session, model):
    return await session.scalar(select(func.count()).select_from(model))


@pytest.fixture
def replication_wait(connection_provider, monkeypatch):
    """Spy on replication waits while still committing each batch."""
    spy = AsyncMock(wraps=connection_provider.wait_for_replication)
    monkeypatch.setattr(connection_provider, "wait_for_replication", spy)
    return spy


class TestPurgeOldDeleted:
    """Test hard deletion of rows soft-deleted before a cutoff."""

    @pytest.mark.asyncio
    async def test_purges_by_cutoff(self, repo, system_repo, default_list, clock):
        """A deleted list goes first; a later deleted entry waits for its cutoff."""
        old_list = await repo.add_list("Old")
        await repo.add_list_entry(old_list, PROJECT, "Live entry")
        clock.advance(days=1)
        await repo.delete_list(old_list)
        t1 = clock.now

        late_entry = await repo.add_list_entry(default_list.id, PROJECT, "Late")
        clock.advance(days=1)
        await repo.delete_list_entry(late_entry)
        t2 = clock.now
        kept_entry = await repo.add_list_entry(default_list.id, PROJECT, "Kept")

        stats = await system_repo.purge_old_deleted(t1 + (t2 - t1) / 2)

        assert stats == PurgeStats(lists=1, entries=1, batches=1)
        remaining_lists = await repo.session.scalars(select(DBReadingList.id))
        assert remaining_lists.all() == [default_list.id]
        remaining = await repo.session.scalars(select(DBReadingListEntry.id))
        assert sorted(remaining.all()) == sorted([late_entry, kept_entry])

        stats = await system_repo.purge_old_deleted(clock.advance(seconds=1))

        assert stats == PurgeStats(entries=1, batches=1)
        remaining = await repo.session.scalars(select(DBReadingListEntry.id))
        assert remaining.all() == [kept_entry]

    @pytest.mark.asyncio
    async def test_cutoff_is_exclusive(self, repo, system_repo, default_list, clock):
        list_id = await repo.add_list("Gone")
        await repo.delete_list(list_id)

        stats = await system_repo.purge_old_deleted(clock.now)

        assert stats.total == 0
        assert await count_rows(repo.session, DBReadingList) == 2

    @pytest.mark.asyncio
    async def test_never_purges_live_rows(self, repo, system_repo, default_list, clock):
        list_id = await repo.add_list("Live")
        await repo.add_list_entry(list_id, PROJECT, "A")

        stats = await system_repo.purge_old_deleted(clock.advance(days=365))

        assert stats.total == 0
        assert await count_rows(repo.session, DBReadingList) == 2
        assert await count_rows(repo.session, DBReadingListEntry) == 1

    @pytest.mark.asyncio
    async def test_purges_all_users(
        self, repo, other_repo, system_repo, default_list, clock
    ):
        mine = await repo.add_list("Mine")
        await other_repo.setup_for_user()
        theirs = await other_repo.add_list("Theirs")
        await repo.delete_list(mine)
        await other_repo.delete_list(theirs)

        stats = await system_repo.purge_old_deleted(clock.advance(seconds=1))

        assert stats.lists == 2

    @pytest.mark.asyncio
    async def test_runs_in_bounded_batches(
        self, repo, make_repository, default_list, clock, replication_wait
    ):
        entry_ids = [
            await repo.add_list_entry(default_list.id, PROJECT, f"Page {i}")
            for i in range(5)
        ]
        for entry_id in entry_ids:
            await repo.delete_list_entry(entry_id)
        small_batches = make_repository(None, purge_batch_size=2)

        stats = await small_batches.purge_old_deleted(clock.advance(seconds=1))

        assert stats == PurgeStats(entries=5, batches=3)
        assert replication_wait.await_count == 3
        assert await count_rows(repo.session, DBReadingListEntry) == 0

    @pytest.mark.asyncio
    async def test_nothing_to_purge(self, system_repo, replication_wait, clock):
        stats = await system_repo.purge_old_deleted(clock.now)

        assert stats == PurgeStats()
        replication_wait.assert_not_awaited()


class TestPurgeSortkeys:
    """Test removal of rank rows that lost their list or entry."""

    @pytest.mark.asyncio
    async def test_removes_orphaned_rank_rows(
        self, repo, system_repo, default_list, clock
    ):
        a = await repo.add_list_entry(default_list.id, PROJECT, "A")
        b = await repo.add_list_entry(default_list.id, PROJECT, "B")
        await repo.set_list_entry_order(default_list.id, [b, a])
        await repo.delete_list_entry(a)
        await system_repo.purge_old_deleted(clock.advance(seconds=1))

        stats = await system_repo.purge_sortkeys()

        assert stats == PurgeStats(entry_sortkeys=1, batches=1)
        remaining = await repo.session.scalars(select(DBReadingListEntrySortkey.entry_id))
        assert remaining.all() == [b]

        # Nothing comes back on a second run
        assert await system_repo.purge_sortkeys() == PurgeStats()

    @pytest.mark.asyncio
    async def test_removes_rank_rows_after_teardown(
        self, repo, other_repo, system_repo, default_list
    ):
        other_default = await other_repo.setup_for_user()
        await repo.teardown_for_user()

        stats = await system_repo.purge_sortkeys()

        assert stats.list_sortkeys == 1
        remaining = await repo.session.scalars(select(DBReadingListSortkey.list_id))
        assert remaining.all() == [other_default.id]

    @pytest.mark.asyncio
    async def test_keeps_rank_of_soft_deleted_rows(
        self, repo, system_repo, default_list
    ):
        a = await repo.add_list("A")
        await repo.set_list_order([default_list.id, a])
        await repo.delete_list(a)

        stats = await system_repo.purge_sortkeys()

        assert stats.total == 0
        assert await count_rows(repo.session, DBReadingListSortkey) == 2

    @pytest.mark.asyncio
    async def test_runs_in_bounded_batches(
        self, repo, make_repository, default_list, replication_wait
    ):
        entry_ids = [
            await repo.add_list_entry(default_list.id, PROJECT, f"Page {i}")
            for i in range(3)
        ]
        await repo.set_list_entry_order(default_list.id, entry_ids)
        await repo.teardown_for_user()
        small_batches = make_repository(None, purge_batch_size=2)

        stats = await small_batches.purge_sortkeys()

        # One batch for the default list's rank, two for the three entries
        assert stats == PurgeStats(list_sortkeys=1, entry_sortkeys=3, batches=3)
        assert replication_wait.await_count == 3
