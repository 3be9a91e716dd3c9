"""Tests for list and entry ordering."""

import pytest

from readinglists.domain.errors import (
    EmptyOrderError,
    EntryNotInListError,
    ListDeletedError,
    ListEntryDeletedError,
    NoSuchListEntryError,
    NoSuchListError,
    NotOwnListEntryError,
    NotOwnListError,
    NotSetUpError,
)

PROJECT = "en.wikipedia.org"


class TestListOrder:
    """Test reading and replacing the order of a user's lists."""

    @pytest.mark.asyncio
    async def test_get_order_not_set_up(self, repo):
        with pytest.raises(NotSetUpError):
            await repo.get_list_order()

    @pytest.mark.asyncio
    async def test_default_order(self, repo, default_list):
        a = await repo.add_list("A")

        assert await repo.get_list_order() == [a, default_list.id]

    @pytest.mark.asyncio
    async def test_set_order_replaces_ranks(self, repo, default_list):
        a = await repo.add_list("A")
        b = await repo.add_list("B")

        await repo.set_list_order([a, b, default_list.id])
        assert await repo.get_list_order() == [a, b, default_list.id]

        await repo.set_list_order([b])
        # Lists left out of the new order lose their rank
        assert await repo.get_list_order() == [default_list.id, a, b]

    @pytest.mark.asyncio
    async def test_duplicate_ids_keep_first_position(self, repo, default_list):
        a = await repo.add_list("A")

        await repo.set_list_order([a, default_list.id, a])

        assert await repo.get_list_order() == [a, default_list.id]

    @pytest.mark.asyncio
    async def test_set_order_bumps_default_list(self, repo, default_list, clock):
        a = await repo.add_list("A")
        clock.advance(minutes=10)

        await repo.set_list_order([default_list.id, a])

        changed = await repo.get_lists_by_date_updated(default_list.updated_at)
        assert [lst.id for lst in changed] == [default_list.id]
        assert changed[0].updated_at == clock.now

    @pytest.mark.asyncio
    async def test_empty_order(self, repo, default_list):
        with pytest.raises(EmptyOrderError):
            await repo.set_list_order([])

    @pytest.mark.asyncio
    async def test_set_order_not_set_up(self, repo):
        with pytest.raises(NotSetUpError):
            await repo.set_list_order([1])

    @pytest.mark.asyncio
    async def test_invalid_ids_leave_order_unchanged(
        self, repo, other_repo, default_list
    ):
        a = await repo.add_list("A")
        await repo.set_list_order([default_list.id, a])
        other_default = await other_repo.setup_for_user()
        gone = await repo.add_list("Gone")
        await repo.delete_list(gone)

        with pytest.raises(NotOwnListError):
            await repo.set_list_order([a, other_default.id])
        with pytest.raises(ListDeletedError):
            await repo.set_list_order([a, gone])
        with pytest.raises(NoSuchListError) as exc_info:
            await repo.set_list_order([a, 9999])

        assert exc_info.value.offending_id == 9999
        assert await repo.get_list_order() == [default_list.id, a]

    @pytest.mark.asyncio
    async def test_order_is_per_user(self, repo, other_repo, default_list):
        a = await repo.add_list("A")
        other_default = await other_repo.setup_for_user()
        theirs = await other_repo.add_list("Theirs")
        await other_repo.set_list_order([theirs, other_default.id])

        await repo.set_list_order([a, default_list.id])

        assert await other_repo.get_list_order() == [theirs, other_default.id]


class TestListEntryOrder:
    """Test reading and replacing the order of a list's entries."""

    @pytest.mark.asyncio
    async def test_default_order_by_id(self, repo, default_list):
        a = await repo.add_list_entry(default_list.id, PROJECT, "A")
        b = await repo.add_list_entry(default_list.id, PROJECT, "B")

        assert await repo.get_list_entry_order(default_list.id) == [a, b]

    @pytest.mark.asyncio
    async def test_set_order(self, repo, default_list):
        a = await repo.add_list_entry(default_list.id, PROJECT, "A")
        b = await repo.add_list_entry(default_list.id, PROJECT, "B")
        c = await repo.add_list_entry(default_list.id, PROJECT, "C")

        await repo.set_list_entry_order(default_list.id, [c, a, b])
        assert await repo.get_list_entry_order(default_list.id) == [c, a, b]

        await repo.set_list_entry_order(default_list.id, [b, c])
        assert await repo.get_list_entry_order(default_list.id) == [a, b, c]

    @pytest.mark.asyncio
    async def test_set_order_bumps_list(self, repo, default_list, clock):
        other_list = await repo.add_list("Other")
        entry = await repo.add_list_entry(other_list, PROJECT, "A")
        clock.advance(minutes=10)

        await repo.set_list_entry_order(other_list, [entry])

        changed = await repo.get_lists_by_date_updated(default_list.updated_at)
        assert [lst.id for lst in changed] == [other_list]

    @pytest.mark.asyncio
    async def test_empty_list(self, repo, default_list):
        assert await repo.get_list_entry_order(default_list.id) == []

    @pytest.mark.asyncio
    async def test_get_order_missing_list(self, repo, default_list):
        with pytest.raises(NoSuchListError):
            await repo.get_list_entry_order(9999)

    @pytest.mark.asyncio
    async def test_get_order_other_users_list(self, repo, other_repo, default_list):
        other_default = await other_repo.setup_for_user()
        await other_repo.add_list_entry(other_default.id, PROJECT, "A")

        with pytest.raises(NotOwnListError):
            await repo.get_list_entry_order(other_default.id)

    @pytest.mark.asyncio
    async def test_get_order_deleted_list(self, repo, default_list):
        list_id = await repo.add_list("Gone")
        await repo.delete_list(list_id)

        with pytest.raises(ListDeletedError):
            await repo.get_list_entry_order(list_id)

    @pytest.mark.asyncio
    async def test_empty_order(self, repo, default_list):
        with pytest.raises(EmptyOrderError):
            await repo.set_list_entry_order(default_list.id, [])

    @pytest.mark.asyncio
    async def test_entry_from_another_list(self, repo, default_list):
        other_list = await repo.add_list("Other")
        a = await repo.add_list_entry(default_list.id, PROJECT, "A")
        elsewhere = await repo.add_list_entry(other_list, PROJECT, "B")

        with pytest.raises(EntryNotInListError) as exc_info:
            await repo.set_list_entry_order(default_list.id, [a, elsewhere])

        assert exc_info.value.offending_id == elsewhere

    @pytest.mark.asyncio
    async def test_other_users_entry(self, repo, other_repo, default_list):
        other_default = await other_repo.setup_for_user()
        theirs = await other_repo.add_list_entry(other_default.id, PROJECT, "A")

        with pytest.raises(NotOwnListEntryError):
            await repo.set_list_entry_order(default_list.id, [theirs])

    @pytest.mark.asyncio
    async def test_deleted_entry(self, repo, default_list):
        a = await repo.add_list_entry(default_list.id, PROJECT, "A")
        await repo.delete_list_entry(a)

        with pytest.raises(ListEntryDeletedError):
            await repo.set_list_entry_order(default_list.id, [a])

    @pytest.mark.asyncio
    async def test_missing_entry(self, repo, default_list):
        a = await repo.add_list_entry(default_list.id, PROJECT, "A")

        with pytest.raises(NoSuchListEntryError) as exc_info:
            await repo.set_list_entry_order(default_list.id, [a, 9999])

        assert exc_info.value.offending_id == 9999

    @pytest.mark.asyncio
    async def test_failed_reorder_keeps_previous_order(self, repo, default_list):
        a = await repo.add_list_entry(default_list.id, PROJECT, "A")
        b = await repo.add_list_entry(default_list.id, PROJECT, "B")
        await repo.set_list_entry_order(default_list.id, [b, a])

        with pytest.raises(NoSuchListEntryError):
            await repo.set_list_entry_order(default_list.id, [a, 9999])

        assert await repo.get_list_entry_order(default_list.id) == [b, a]
