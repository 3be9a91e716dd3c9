"""Core reading list repository implementation.

One repository instance serves one request for one user. All coordination
between concurrent requests goes through the database: locking reads
(``SELECT ... FOR UPDATE``) serialize setup, entry insertion and reordering,
and multi-statement mutations run inside a savepoint so they apply as a unit.

Purge operations ignore the user and sweep the whole store in bounded
batches, committing and waiting for replicas between batches.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import Insert, Row, Table, delete, insert, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from readinglists.config import get_logger
from readinglists.domain.entities import (
    PurgeStats,
    ReadingList,
    ReadingListEntry,
    as_utc,
    utc_now,
)
from readinglists.domain.errors import (
    AlreadySetUpError,
    CannotDeleteDefaultListError,
    DuplicatePageError,
    EmptyListIdsError,
    EmptyOrderError,
    EntryNotInListError,
    InconsistentStateError,
    ListDeletedError,
    ListEntryDeletedError,
    NoSuchListEntryError,
    NoSuchListError,
    NotOwnListEntryError,
    NotOwnListError,
    NotSetUpError,
    UserRequiredError,
)
from readinglists.domain.repositories.interfaces import (
    Clock,
    ConnectionProviderProtocol,
    ReadConsistency,
)
from readinglists.infrastructure.persistence.database.db_models import (
    DBReadingList,
    DBReadingListEntry,
    DBReadingListEntrySortkey,
    DBReadingListSortkey,
    ReadingListsDBBase,
    ReadingListsRecordBase,
)
from readinglists.infrastructure.persistence.repositories.base_repo import (
    BaseRepository,
    filter_active,
    filter_deleted,
    ranked,
)
from readinglists.infrastructure.persistence.repositories.reading_list.mapper import (
    ReadingListEntryMapper,
    ReadingListMapper,
)
from readinglists.infrastructure.persistence.repositories.repo_decorator import (
    db_operation,
)

# Create module logger
logger = get_logger(__name__)

DEFAULT_LIST_NAME = "default"
DEFAULT_LIMIT = 1000
PURGE_BATCH_SIZE = 1000

# Dialects spelling a duplicate-ignoring insert as INSERT IGNORE, without RETURNING
MYSQL_DIALECTS = frozenset({"mysql", "mariadb"})


def insert_ignoring_duplicates(
    dialect_name: str, table: Table, values: dict[str, Any]
) -> Insert:
    """Build an INSERT that skips rows violating a unique constraint.

    SQLite and PostgreSQL statements return the new id; MySQL ones do not.

    Raises:
        NotImplementedError: If the dialect has no duplicate-ignoring insert
    """
    match dialect_name:
        case "sqlite":
            stmt = sqlite_insert(table).values(**values).on_conflict_do_nothing()
            return stmt.returning(table.c.id)
        case "postgresql":
            stmt = pg_insert(table).values(**values).on_conflict_do_nothing()
            return stmt.returning(table.c.id)
        case "mysql" | "mariadb":
            return insert(table).values(**values).prefix_with("IGNORE")
        case _:
            raise NotImplementedError(
                f"Duplicate-ignoring insert is not supported on {dialect_name!r}"
            )


class ReadingListRepository(BaseRepository[DBReadingList, ReadingList]):
    """Repository for one user's reading lists, entries and their order."""

    def __init__(
        self,
        user_id: int | None,
        write_session: AsyncSession,
        read_session: AsyncSession,
        connection_provider: ConnectionProviderProtocol,
        *,
        clock: Clock | None = None,
        logger: Any = None,
        purge_batch_size: int = PURGE_BATCH_SIZE,
    ) -> None:
        """Initialize repository.

        Args:
            user_id: Owner all list and entry operations are scoped to, or None
                for the system identity (purge operations only)
            write_session: Session on the primary database
            read_session: Session on a replica (may be the write session)
            connection_provider: Provides replication waits for purge loops
            clock: Source of the current time (defaults to UTC now)
            logger: Event logger (defaults to the module logger)
            purge_batch_size: Maximum rows handled per purge batch
        """
        super().__init__(
            session=write_session,
            model_class=DBReadingList,
            mapper=ReadingListMapper(),
        )
        self.user_id = user_id
        self.read_session = read_session
        self.connection_provider = connection_provider
        self.clock = clock or utc_now
        self.logger = logger if logger is not None else get_logger(__name__)
        self.purge_batch_size = purge_batch_size
        self.entry_mapper = ReadingListEntryMapper()

    # -------------------------------------------------------------------------
    # HELPERS
    # -------------------------------------------------------------------------

    def _require_user(self) -> int:
        """Return the user id, or fail for the system identity."""
        if not isinstance(self.user_id, int) or isinstance(self.user_id, bool):
            raise UserRequiredError()
        return self.user_id

    def _now(self) -> datetime:
        return as_utc(self.clock())

    async def _is_setup(self, user_id: int, consistency: ReadConsistency) -> bool:
        stmt = (
            select(DBReadingList.id)
            .where(
                DBReadingList.user_id == user_id,
                DBReadingList.is_default == True,  # noqa: E712
            )
            .limit(1)
        )
        if consistency is ReadConsistency.LATEST_LOCKED:
            return await self.session.scalar(stmt.with_for_update()) is not None
        return await self.read_session.scalar(stmt) is not None

    def _check_lists(
        self, user_id: int, ids: list[int], rows: Sequence[Row]
    ) -> None:
        """Validate list rows fetched for ids, reporting the first problem found."""
        position = {list_id: index for index, list_id in enumerate(ids)}
        for row in sorted(rows, key=lambda r: position[r.id]):
            if row.user_id != user_id:
                raise NotOwnListError(row.id)
            if row.is_deleted:
                raise ListDeletedError(row.id)

        found = {row.id for row in rows}
        missing = [list_id for list_id in ids if list_id not in found]
        if missing:
            raise NoSuchListError(missing[0])

    async def _fetch_row(
        self, session: AsyncSession, *columns: Any, where: Any
    ) -> Row | None:
        result = await session.execute(select(*columns).where(where))
        return result.first()

    async def _insert_entry_ignoring_duplicates(
        self, values: dict[str, Any]
    ) -> int | None:
        """Insert an entry row; None when (list, project, title) already exists."""
        dialect_name = self.session.get_bind().dialect.name
        result = await self.session.execute(
            insert_ignoring_duplicates(
                dialect_name, DBReadingListEntry.__table__, values
            )
        )
        if dialect_name in MYSQL_DIALECTS:
            return result.inserted_primary_key[0] if result.rowcount else None
        return result.scalar_one_or_none()

    # -------------------------------------------------------------------------
    # SETUP / TEARDOWN
    # -------------------------------------------------------------------------

    @db_operation("setup_for_user")
    async def setup_for_user(self) -> ReadingList:
        """Provision the user by creating their default list at rank 0.

        Raises:
            AlreadySetUpError: If the user already has a default list
        """
        user_id = self._require_user()
        now = self._now()

        async def _setup() -> int:
            if await self._is_setup(user_id, ReadConsistency.LATEST_LOCKED):
                raise AlreadySetUpError()

            list_id = await self.session.scalar(
                insert(DBReadingList)
                .values(
                    user_id=user_id,
                    is_default=True,
                    name=DEFAULT_LIST_NAME,
                    description="",
                    color="",
                    image="",
                    icon="",
                    created_at=now,
                    updated_at=now,
                    is_deleted=False,
                )
                .returning(DBReadingList.id)
            )
            await self.session.execute(
                insert(DBReadingListSortkey).values(list_id=list_id, sort_index=0)
            )
            return list_id

        list_id = await self.execute_transaction(_setup)
        self.logger.info("Set up for user {user_id}", user_id=user_id)

        return ReadingList(
            id=list_id,
            user_id=user_id,
            name=DEFAULT_LIST_NAME,
            is_default=True,
            created_at=now,
            updated_at=now,
        )

    @db_operation("teardown_for_user")
    async def teardown_for_user(self) -> None:
        """Hard-delete every list and entry of the user.

        Rank rows are left for the sortkey purge.

        Raises:
            NotSetUpError: If the user has no default list
        """
        user_id = self._require_user()

        async def _teardown() -> None:
            if not await self._is_setup(user_id, ReadConsistency.LATEST_LOCKED):
                raise NotSetUpError()

            await self.session.execute(
                delete(DBReadingListEntry)
                .where(DBReadingListEntry.user_id == user_id)
                .execution_options(synchronize_session=False)
            )
            await self.session.execute(
                delete(DBReadingList)
                .where(DBReadingList.user_id == user_id)
                .execution_options(synchronize_session=False)
            )

        await self.execute_transaction(_teardown)
        self.logger.info("Tore down for user {user_id}", user_id=user_id)

    @db_operation("is_setup_for_user")
    async def is_setup_for_user(
        self, consistency: ReadConsistency = ReadConsistency.REPLICA
    ) -> bool:
        """Whether the user has a default list.

        Args:
            consistency: LATEST_LOCKED reads the primary with a row lock, for
                callers about to write; REPLICA tolerates staleness
        """
        user_id = self._require_user()
        return await self._is_setup(user_id, consistency)

    # -------------------------------------------------------------------------
    # LISTS
    # -------------------------------------------------------------------------

    @db_operation("add_list")
    async def add_list(
        self,
        name: str,
        description: str | None = None,
        color: str | None = None,
        image: str | None = None,
        icon: str | None = None,
    ) -> int:
        """Create a non-default list and return its id.

        Raises:
            NotSetUpError: If the user has no default list yet
        """
        user_id = self._require_user()
        now = self._now()

        async def _add() -> int:
            if not await self._is_setup(user_id, ReadConsistency.LATEST_LOCKED):
                raise NotSetUpError()

            return await self.session.scalar(
                insert(DBReadingList)
                .values(
                    user_id=user_id,
                    is_default=False,
                    name=name,
                    description=description or "",
                    color=color or "",
                    image=image or "",
                    icon=icon or "",
                    created_at=now,
                    updated_at=now,
                    is_deleted=False,
                )
                .returning(DBReadingList.id)
            )

        list_id = await self.execute_transaction(_add)
        self.logger.info(
            "Added list {list_id} for user {user_id}", list_id=list_id, user_id=user_id
        )
        return list_id

    @db_operation("get_all_lists")
    async def get_all_lists(
        self, limit: int = DEFAULT_LIMIT, offset: int = 0
    ) -> list[ReadingList]:
        """Non-deleted lists of the user, unranked lists first, then by rank.

        Raises:
            NotSetUpError: If nothing was found and the user was never set up
        """
        user_id = self._require_user()
        stmt = (
            self.select()
            .outerjoin(
                DBReadingListSortkey, DBReadingListSortkey.list_id == DBReadingList.id
            )
            .where(DBReadingList.user_id == user_id)
            .order_by(*ranked(DBReadingListSortkey.sort_index, DBReadingList.id))
        )
        db_lists = await self._execute_query(
            self.paginate(stmt, limit, offset), self.read_session
        )

        if not db_lists and not await self._is_setup(user_id, ReadConsistency.REPLICA):
            raise NotSetUpError()

        return await self.mapper.map_collection(db_lists)

    @db_operation("update_list")
    async def update_list(
        self,
        list_id: int,
        name: str | None = None,
        description: str | None = None,
        color: str | None = None,
        image: str | None = None,
        icon: str | None = None,
    ) -> None:
        """Update the given fields of a list; None leaves a field unchanged.

        The updated timestamp is always refreshed.

        Raises:
            NoSuchListError: If the list does not exist
            NotOwnListError: If the list belongs to another user
        """
        user_id = self._require_user()
        fields = {
            "name": name,
            "description": description,
            "color": color,
            "image": image,
            "icon": icon,
        }
        values = {key: value for key, value in fields.items() if value is not None}
        values["updated_at"] = self._now()

        result = await self.session.execute(
            update(DBReadingList)
            .where(DBReadingList.id == list_id, DBReadingList.user_id == user_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            return

        # Failed; find out why
        row = await self._fetch_row(
            self.session, DBReadingList.user_id, where=DBReadingList.id == list_id
        )
        if row is None:
            raise NoSuchListError(list_id)
        if row.user_id != user_id:
            raise NotOwnListError(list_id)
        raise InconsistentStateError(f"update_list failed for list {list_id}")

    @db_operation("delete_list")
    async def delete_list(self, list_id: int) -> None:
        """Soft-delete a list and bump its updated timestamp.

        Raises:
            NoSuchListError: If the list does not exist
            NotOwnListError: If the list belongs to another user
            CannotDeleteDefaultListError: If the list is the default list
        """
        user_id = self._require_user()

        result = await self.session.execute(
            update(DBReadingList)
            .where(
                DBReadingList.id == list_id,
                DBReadingList.user_id == user_id,
                DBReadingList.is_default == False,  # noqa: E712
            )
            .values(is_deleted=True, updated_at=self._now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            self.logger.info(
                "Deleted list {list_id} for user {user_id}",
                list_id=list_id,
                user_id=user_id,
            )
            return

        row = await self._fetch_row(
            self.session,
            DBReadingList.user_id,
            DBReadingList.is_default,
            where=DBReadingList.id == list_id,
        )
        if row is None:
            raise NoSuchListError(list_id)
        if row.user_id != user_id:
            raise NotOwnListError(list_id)
        if row.is_default:
            raise CannotDeleteDefaultListError(list_id)
        raise InconsistentStateError(f"delete_list failed for list {list_id}")

    # -------------------------------------------------------------------------
    # ENTRIES
    # -------------------------------------------------------------------------

    @db_operation("add_list_entry")
    async def add_list_entry(self, list_id: int, project: str, title: str) -> int:
        """Add a page to one of the user's lists and return the new entry id.

        A soft-deleted entry for the same page still counts as a duplicate.

        Raises:
            NoSuchListError: If the list does not exist
            NotOwnListError: If the list belongs to another user
            DuplicatePageError: If the page is already in the list
        """
        user_id = self._require_user()
        now = self._now()

        async def _add() -> int:
            owner = await self.session.scalar(
                select(DBReadingList.user_id)
                .where(DBReadingList.id == list_id)
                .with_for_update()
            )
            if owner is None:
                raise NoSuchListError(list_id)
            if owner != user_id:
                raise NotOwnListError(list_id)

            entry_id = await self._insert_entry_ignoring_duplicates(
                {
                    "list_id": list_id,
                    "user_id": user_id,
                    "project": project,
                    "title": title,
                    "created_at": now,
                    "updated_at": now,
                    "is_deleted": False,
                }
            )
            if entry_id is None:
                raise DuplicatePageError(list_id, project, title)
            return entry_id

        entry_id = await self.execute_transaction(_add)
        self.logger.info(
            "Added entry {entry_id} for user {user_id}",
            entry_id=entry_id,
            user_id=user_id,
        )
        return entry_id

    @db_operation("get_list_entries")
    async def get_list_entries(
        self, list_ids: Sequence[int], limit: int = DEFAULT_LIMIT, offset: int = 0
    ) -> list[ReadingListEntry]:
        """Non-deleted entries of the given lists, by list id then entry rank.

        Raises:
            EmptyListIdsError: If no list ids were given
            NotOwnListError: If a list belongs to another user
            ListDeletedError: If a list is deleted
            NoSuchListError: If a list does not exist
        """
        user_id = self._require_user()
        if not list_ids:
            raise EmptyListIdsError()
        ids = list(dict.fromkeys(list_ids))

        rows = (
            await self.read_session.execute(
                select(
                    DBReadingList.id, DBReadingList.user_id, DBReadingList.is_deleted
                ).where(DBReadingList.id.in_(ids))
            )
        ).all()
        self._check_lists(user_id, ids, rows)

        stmt = (
            select(DBReadingListEntry)
            .outerjoin(
                DBReadingListEntrySortkey,
                DBReadingListEntrySortkey.entry_id == DBReadingListEntry.id,
            )
            .where(
                DBReadingListEntry.list_id.in_(ids),
                DBReadingListEntry.user_id == user_id,
                filter_active(DBReadingListEntry),
            )
            .order_by(
                DBReadingListEntry.list_id,
                *ranked(DBReadingListEntrySortkey.sort_index, DBReadingListEntry.id),
            )
        )
        db_entries = await self._execute_query(
            self.paginate(stmt, limit, offset), self.read_session
        )
        return await self.entry_mapper.map_collection(db_entries)

    @db_operation("delete_list_entry")
    async def delete_list_entry(self, entry_id: int) -> None:
        """Soft-delete an entry and bump its updated timestamp.

        Raises:
            NoSuchListEntryError: If the entry does not exist
            NotOwnListEntryError: If the entry belongs to another user
        """
        user_id = self._require_user()

        result = await self.session.execute(
            update(DBReadingListEntry)
            .where(
                DBReadingListEntry.id == entry_id,
                DBReadingListEntry.user_id == user_id,
            )
            .values(is_deleted=True, updated_at=self._now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            self.logger.info(
                "Deleted entry {entry_id} for user {user_id}",
                entry_id=entry_id,
                user_id=user_id,
            )
            return

        row = await self._fetch_row(
            self.session,
            DBReadingListEntry.user_id,
            where=DBReadingListEntry.id == entry_id,
        )
        if row is None:
            raise NoSuchListEntryError(entry_id)
        if row.user_id != user_id:
            raise NotOwnListEntryError(entry_id)
        raise InconsistentStateError(f"delete_list_entry failed for entry {entry_id}")

    # -------------------------------------------------------------------------
    # ORDERING
    # -------------------------------------------------------------------------

    @db_operation("get_list_order")
    async def get_list_order(self) -> list[int]:
        """Ids of the user's non-deleted lists, unranked first, then by rank.

        Raises:
            NotSetUpError: If the user has no lists at all
        """
        user_id = self._require_user()
        stmt = (
            self.select(DBReadingList.id)
            .outerjoin(
                DBReadingListSortkey, DBReadingListSortkey.list_id == DBReadingList.id
            )
            .where(DBReadingList.user_id == user_id)
            .order_by(*ranked(DBReadingListSortkey.sort_index, DBReadingList.id))
        )
        ids = await self._execute_ids(stmt, self.read_session)
        if not ids:
            raise NotSetUpError()
        return ids

    @db_operation("set_list_order")
    async def set_list_order(self, order: Sequence[int]) -> None:
        """Replace the rank of the user's lists with the positions in order.

        Lists missing from order lose their rank. The default list's updated
        timestamp is bumped so syncing clients notice the change.

        Raises:
            EmptyOrderError: If order is empty
            NotSetUpError: If the user has no default list
            NotOwnListError: If a list belongs to another user
            ListDeletedError: If a list is deleted
            NoSuchListError: If a list does not exist
        """
        user_id = self._require_user()
        if not order:
            raise EmptyOrderError()
        ids = list(dict.fromkeys(order))
        now = self._now()

        async def _set_order() -> None:
            if not await self._is_setup(user_id, ReadConsistency.LATEST_LOCKED):
                raise NotSetUpError()

            # Validate against the primary to avoid racing a concurrent setup
            rows = (
                await self.session.execute(
                    select(
                        DBReadingList.id, DBReadingList.user_id, DBReadingList.is_deleted
                    ).where(DBReadingList.id.in_(ids))
                )
            ).all()
            self._check_lists(user_id, ids, rows)

            await self.session.execute(
                delete(DBReadingListSortkey)
                .where(
                    DBReadingListSortkey.list_id.in_(
                        select(DBReadingList.id).where(DBReadingList.user_id == user_id)
                    )
                )
                .execution_options(synchronize_session=False)
            )
            await self.session.execute(
                insert(DBReadingListSortkey),
                [
                    {"list_id": list_id, "sort_index": index}
                    for index, list_id in enumerate(ids)
                ],
            )
            await self.session.execute(
                update(DBReadingList)
                .where(
                    DBReadingList.user_id == user_id,
                    DBReadingList.is_default == True,  # noqa: E712
                )
                .values(updated_at=now)
                .execution_options(synchronize_session=False)
            )

        await self.execute_transaction(_set_order)

    @db_operation("get_list_entry_order")
    async def get_list_entry_order(self, list_id: int) -> list[int]:
        """Ids of a list's non-deleted entries, unranked first, then by rank.

        Raises:
            NoSuchListError: If the list does not exist
            NotOwnListError: If the list belongs to another user
            ListDeletedError: If the list is deleted
        """
        user_id = self._require_user()
        stmt = (
            select(DBReadingListEntry.id)
            .outerjoin(
                DBReadingListEntrySortkey,
                DBReadingListEntrySortkey.entry_id == DBReadingListEntry.id,
            )
            .where(
                DBReadingListEntry.list_id == list_id,
                DBReadingListEntry.user_id == user_id,
                filter_active(DBReadingListEntry),
            )
            .order_by(
                *ranked(DBReadingListEntrySortkey.sort_index, DBReadingListEntry.id)
            )
        )
        ids = await self._execute_ids(stmt, self.read_session)
        if ids:
            return ids

        # Empty; tell an empty list apart from a bad list id
        row = await self._fetch_row(
            self.read_session,
            DBReadingList.user_id,
            DBReadingList.is_deleted,
            where=DBReadingList.id == list_id,
        )
        if row is None:
            raise NoSuchListError(list_id)
        if row.user_id != user_id:
            raise NotOwnListError(list_id)
        if row.is_deleted:
            raise ListDeletedError(list_id)
        return ids

    @db_operation("set_list_entry_order")
    async def set_list_entry_order(self, list_id: int, order: Sequence[int]) -> None:
        """Replace the rank of a list's entries with the positions in order.

        The list row is locked first, so concurrent reorderings of the same
        list serialize. The list's updated timestamp is bumped.

        Raises:
            EmptyOrderError: If order is empty
            NotOwnListEntryError: If an entry belongs to another user
            EntryNotInListError: If an entry belongs to a different list
            ListEntryDeletedError: If an entry is deleted
            NoSuchListEntryError: If an entry does not exist
        """
        user_id = self._require_user()
        if not order:
            raise EmptyOrderError()
        ids = list(dict.fromkeys(order))
        now = self._now()

        async def _set_order() -> None:
            await self.session.execute(
                select(DBReadingList.id)
                .where(DBReadingList.id == list_id)
                .with_for_update()
            )

            rows = (
                await self.session.execute(
                    select(
                        DBReadingListEntry.id,
                        DBReadingListEntry.list_id,
                        DBReadingListEntry.user_id,
                        DBReadingListEntry.is_deleted,
                    ).where(DBReadingListEntry.id.in_(ids))
                )
            ).all()
            position = {entry_id: index for index, entry_id in enumerate(ids)}
            for row in sorted(rows, key=lambda r: position[r.id]):
                if row.user_id != user_id:
                    raise NotOwnListEntryError(row.id)
                if row.list_id != list_id:
                    raise EntryNotInListError(row.id)
                if row.is_deleted:
                    raise ListEntryDeletedError(row.id)

            found = {row.id for row in rows}
            missing = [entry_id for entry_id in ids if entry_id not in found]
            if missing:
                raise NoSuchListEntryError(missing[0])

            await self.session.execute(
                delete(DBReadingListEntrySortkey)
                .where(
                    DBReadingListEntrySortkey.entry_id.in_(
                        select(DBReadingListEntry.id).where(
                            DBReadingListEntry.list_id == list_id
                        )
                    )
                )
                .execution_options(synchronize_session=False)
            )
            await self.session.execute(
                insert(DBReadingListEntrySortkey),
                [
                    {"entry_id": entry_id, "sort_index": index}
                    for index, entry_id in enumerate(ids)
                ],
            )
            await self.session.execute(
                update(DBReadingList)
                .where(DBReadingList.id == list_id)
                .values(updated_at=now)
                .execution_options(synchronize_session=False)
            )

        await self.execute_transaction(_set_order)

    # -------------------------------------------------------------------------
    # SYNC
    # -------------------------------------------------------------------------

    @db_operation("get_lists_by_date_updated")
    async def get_lists_by_date_updated(
        self, since: datetime, limit: int = DEFAULT_LIMIT, offset: int = 0
    ) -> list[ReadingList]:
        """Lists changed strictly after since, deleted ones included, by id."""
        user_id = self._require_user()
        stmt = (
            select(DBReadingList)
            .where(
                DBReadingList.user_id == user_id,
                DBReadingList.updated_at > as_utc(since),
            )
            .order_by(DBReadingList.id)
        )
        db_lists = await self._execute_query(
            self.paginate(stmt, limit, offset), self.read_session
        )
        return await self.mapper.map_collection(db_lists)

    @db_operation("get_list_entries_by_date_updated")
    async def get_list_entries_by_date_updated(
        self, since: datetime, limit: int = DEFAULT_LIMIT, offset: int = 0
    ) -> list[ReadingListEntry]:
        """Entries changed strictly after since, deleted ones included.

        Entries of deleted lists are left out; the list's own change covers them.
        """
        user_id = self._require_user()
        stmt = (
            select(DBReadingListEntry)
            .join(DBReadingList, DBReadingList.id == DBReadingListEntry.list_id)
            .where(
                DBReadingList.user_id == user_id,
                filter_active(DBReadingList),
                DBReadingListEntry.updated_at > as_utc(since),
            )
            .order_by(DBReadingListEntry.list_id, DBReadingListEntry.id)
        )
        db_entries = await self._execute_query(
            self.paginate(stmt, limit, offset), self.read_session
        )
        return await self.entry_mapper.map_collection(db_entries)

    # -------------------------------------------------------------------------
    # MEMBERSHIP
    # -------------------------------------------------------------------------

    @db_operation("get_lists_by_page")
    async def get_lists_by_page(
        self, project: str, title: str, limit: int = DEFAULT_LIMIT, offset: int = 0
    ) -> list[ReadingList]:
        """Non-deleted lists of the user holding a non-deleted entry for the page."""
        user_id = self._require_user()
        containing = select(DBReadingListEntry.list_id).where(
            DBReadingListEntry.user_id == user_id,
            DBReadingListEntry.project == project,
            DBReadingListEntry.title == title,
            filter_active(DBReadingListEntry),
        )
        stmt = (
            self.select()
            .where(
                DBReadingList.user_id == user_id,
                DBReadingList.id.in_(containing),
            )
            .order_by(DBReadingList.id)
        )
        db_lists = await self._execute_query(
            self.paginate(stmt, limit, offset), self.read_session
        )
        return await self.mapper.map_collection(db_lists)

    # -------------------------------------------------------------------------
    # MAINTENANCE (ignores the user)
    # -------------------------------------------------------------------------

    async def _purge_orphaned_sortkeys(
        self,
        sortkey_model: type[ReadingListsDBBase],
        key_column: Any,
        parent_model: type[ReadingListsRecordBase],
        kind: str,
    ) -> tuple[int, int]:
        purged = batches = 0
        while True:
            stmt = (
                select(key_column)
                .select_from(sortkey_model)
                .outerjoin(parent_model, parent_model.id == key_column)
                .where(parent_model.id.is_(None))
                .group_by(key_column)
                .limit(self.purge_batch_size)
            )
            ids = await self._execute_ids(stmt)
            if not ids:
                break

            await self.session.execute(
                delete(sortkey_model)
                .where(key_column.in_(ids))
                .execution_options(synchronize_session=False)
            )
            purged += len(ids)
            batches += 1
            self.logger.debug(
                "Purged {count} {kind} sortkeys", count=len(ids), kind=kind
            )
            await self.connection_provider.wait_for_replication()

        return purged, batches

    @db_operation("purge_sortkeys")
    async def purge_sortkeys(self) -> PurgeStats:
        """Delete rank rows whose list or entry no longer exists."""
        list_sortkeys, list_batches = await self._purge_orphaned_sortkeys(
            DBReadingListSortkey, DBReadingListSortkey.list_id, DBReadingList, "list"
        )
        entry_sortkeys, entry_batches = await self._purge_orphaned_sortkeys(
            DBReadingListEntrySortkey,
            DBReadingListEntrySortkey.entry_id,
            DBReadingListEntry,
            "entry",
        )
        return PurgeStats(
            list_sortkeys=list_sortkeys,
            entry_sortkeys=entry_sortkeys,
            batches=list_batches + entry_batches,
        )

    @db_operation("purge_old_deleted")
    async def purge_old_deleted(self, before: datetime) -> PurgeStats:
        """Hard-delete lists and entries soft-deleted before a cutoff.

        Purging a list also removes all its entries, deleted or not. Deleted
        entries of surviving lists are purged in a second pass.

        Args:
            before: Rows last updated strictly before this time are purged
        """
        cutoff = as_utc(before)
        lists = entries = batches = 0

        while True:
            list_ids = await self._execute_ids(
                select(DBReadingList.id)
                .where(filter_deleted(DBReadingList), DBReadingList.updated_at < cutoff)
                .limit(self.purge_batch_size)
            )
            if not list_ids:
                break

            entry_result = await self.session.execute(
                delete(DBReadingListEntry)
                .where(DBReadingListEntry.list_id.in_(list_ids))
                .execution_options(synchronize_session=False)
            )
            list_result = await self.session.execute(
                delete(DBReadingList)
                .where(DBReadingList.id.in_(list_ids))
                .execution_options(synchronize_session=False)
            )
            lists += list_result.rowcount
            entries += entry_result.rowcount
            batches += 1
            self.logger.debug(
                "Purged {lists} deleted lists and {entries} of their entries",
                lists=list_result.rowcount,
                entries=entry_result.rowcount,
            )
            await self.connection_provider.wait_for_replication()

        while True:
            entry_ids = await self._execute_ids(
                select(DBReadingListEntry.id)
                .where(
                    filter_deleted(DBReadingListEntry),
                    DBReadingListEntry.updated_at < cutoff,
                )
                .limit(self.purge_batch_size)
            )
            if not entry_ids:
                break

            entry_result = await self.session.execute(
                delete(DBReadingListEntry)
                .where(DBReadingListEntry.id.in_(entry_ids))
                .execution_options(synchronize_session=False)
            )
            entries += entry_result.rowcount
            batches += 1
            self.logger.debug(
                "Purged {entries} deleted entries", entries=entry_result.rowcount
            )
            await self.connection_provider.wait_for_replication()

        return PurgeStats(lists=lists, entries=entries, batches=batches)
