"""End-to-end walk through a user's reading list lifecycle."""

import pytest

from readinglists.domain.errors import CannotDeleteDefaultListError

PROJECT = "en.wikipedia.org"


@pytest.mark.asyncio
async def test_setup_order_and_delete_lists(repo):
    default = await repo.setup_for_user()
    assert default.id == 1
    assert default.is_default

    dogs = await repo.add_list("dogs")
    assert dogs == 2

    entry_id = await repo.add_list_entry(dogs, PROJECT, "Dog")
    assert [e.id for e in await repo.get_list_entries([dogs])] == [entry_id]

    await repo.set_list_order([dogs, default.id])
    assert await repo.get_list_order() == [dogs, default.id]

    with pytest.raises(CannotDeleteDefaultListError):
        await repo.delete_list(default.id)

    await repo.delete_list(dogs)

    assert [lst.id for lst in await repo.get_all_lists()] == [default.id]
