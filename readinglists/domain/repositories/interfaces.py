"""Domain repository interfaces.

These interfaces define the contracts for reading list storage without
depending on infrastructure implementations. The application layer depends
only on these protocols.
"""

from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol, Self

if TYPE_CHECKING:
    from readinglists.domain.entities import PurgeStats, ReadingList, ReadingListEntry

# Source of "now" for timestamps written by the repository
type Clock = Callable[[], datetime]


class ReadConsistency(StrEnum):
    """How fresh a read must be."""

    LATEST_LOCKED = "latest-locked"  # primary, locking read
    REPLICA = "replica"  # possibly stale replica read


class ConnectionProviderProtocol(Protocol):
    """Hands out database handles and paces bulk writes against replicas."""

    def get_write_session(self) -> Any:
        """Session bound to the primary database."""
        ...

    def get_read_session(self) -> Any:
        """Session bound to a replica, or the primary when none is configured."""
        ...

    async def wait_for_replication(self) -> None:
        """Commit pending primary writes and block until replicas caught up."""
        ...


class ReadingListRepositoryProtocol(Protocol):
    """Repository interface for one user's reading lists, plus global purges."""

    # Setup / teardown
    def setup_for_user(self) -> Awaitable["ReadingList"]:
        """Create the default list; fails if already set up."""
        ...

    def teardown_for_user(self) -> Awaitable[None]:
        """Hard-delete every list and entry of the user."""
        ...

    def is_setup_for_user(
        self, consistency: ReadConsistency = ReadConsistency.REPLICA
    ) -> Awaitable[bool]:
        """Whether the user has a default list."""
        ...

    # Lists
    def add_list(
        self,
        name: str,
        description: str | None = None,
        color: str | None = None,
        image: str | None = None,
        icon: str | None = None,
    ) -> Awaitable[int]:
        """Create a non-default list and return its id."""
        ...

    def get_all_lists(
        self, limit: int = 1000, offset: int = 0
    ) -> Awaitable[list["ReadingList"]]:
        """Non-deleted lists of the user in rank order."""
        ...

    def update_list(
        self,
        list_id: int,
        name: str | None = None,
        description: str | None = None,
        color: str | None = None,
        image: str | None = None,
        icon: str | None = None,
    ) -> Awaitable[None]:
        """Partially update a list; None fields keep their stored value."""
        ...

    def delete_list(self, list_id: int) -> Awaitable[None]:
        """Soft-delete a non-default list."""
        ...

    # Entries
    def add_list_entry(self, list_id: int, project: str, title: str) -> Awaitable[int]:
        """Add a page to a list and return the new entry id."""
        ...

    def get_list_entries(
        self, list_ids: Sequence[int], limit: int = 1000, offset: int = 0
    ) -> Awaitable[list["ReadingListEntry"]]:
        """Non-deleted entries of the given lists, by list then rank."""
        ...

    def delete_list_entry(self, entry_id: int) -> Awaitable[None]:
        """Soft-delete an entry."""
        ...

    # Ordering
    def get_list_order(self) -> Awaitable[list[int]]:
        """Ids of the user's non-deleted lists in rank order."""
        ...

    def set_list_order(self, order: Sequence[int]) -> Awaitable[None]:
        """Replace the rank of the user's lists."""
        ...

    def get_list_entry_order(self, list_id: int) -> Awaitable[list[int]]:
        """Ids of a list's non-deleted entries in rank order."""
        ...

    def set_list_entry_order(self, list_id: int, order: Sequence[int]) -> Awaitable[None]:
        """Replace the rank of a list's entries."""
        ...

    # Sync
    def get_lists_by_date_updated(
        self, since: datetime, limit: int = 1000, offset: int = 0
    ) -> Awaitable[list["ReadingList"]]:
        """Lists, deleted ones included, changed after a timestamp."""
        ...

    def get_list_entries_by_date_updated(
        self, since: datetime, limit: int = 1000, offset: int = 0
    ) -> Awaitable[list["ReadingListEntry"]]:
        """Entries of non-deleted lists changed after a timestamp."""
        ...

    # Membership
    def get_lists_by_page(
        self, project: str, title: str, limit: int = 1000, offset: int = 0
    ) -> Awaitable[list["ReadingList"]]:
        """Non-deleted lists holding a non-deleted entry for the page."""
        ...

    # Maintenance
    def purge_sortkeys(self) -> Awaitable["PurgeStats"]:
        """Remove rank rows whose list or entry no longer exists."""
        ...

    def purge_old_deleted(self, before: datetime) -> Awaitable["PurgeStats"]:
        """Hard-delete lists and entries soft-deleted before a cutoff."""
        ...


class UnitOfWorkProtocol(Protocol):
    """Unit of Work interface for transaction boundary management.

    Each UnitOfWork instance manages one primary transaction and hands out
    repositories that share it.
    """

    async def __aenter__(self) -> Self:
        """Enter async context manager."""
        ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit async context manager with automatic commit/rollback."""
        ...

    async def commit(self) -> None:
        """Explicitly commit the current transaction."""
        ...

    async def rollback(self) -> None:
        """Explicitly rollback the current transaction."""
        ...

    def get_reading_list_repository(
        self, user_id: int | None = None
    ) -> ReadingListRepositoryProtocol:
        """Get a repository scoped to a user, or the system identity for None."""
        ...
