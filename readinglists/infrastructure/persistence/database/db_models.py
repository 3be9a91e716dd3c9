"""SQLAlchemy database models for reading lists.

Four tables back the repository: lists, entries, and one rank table for each.
Rank tables carry no foreign keys; their rows may outlive the list or entry
they point at until the sortkey purge removes them.
"""

from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Text,
    UniqueConstraint,
    inspect,
)
from sqlalchemy.ext.asyncio import AsyncAttrs, AsyncEngine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from readinglists.config import get_logger

# Create module logger
logger = get_logger(__name__)

# Define naming convention for constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_N_name)s",  # Index
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",  # Unique constraint
    "ck": "ck_%(table_name)s_%(constraint_name)s",  # Check constraint
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",  # Foreign key
    "pk": "pk_%(table_name)s",  # Primary key
}

# Create metadata with naming convention
metadata = MetaData(naming_convention=convention)


class ReadingListsDBBase(AsyncAttrs, DeclarativeBase):
    """Base class for all reading list tables."""

    metadata = metadata


class ReadingListsRecordBase(ReadingListsDBBase):
    """Base for owned records with timestamps and soft delete."""

    __abstract__ = True

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class DBReadingList(ReadingListsRecordBase):
    """A user's list; exactly one per provisioned user has is_default set."""

    __tablename__ = "reading_lists"
    __table_args__ = (
        Index(None, "user_id", "is_default"),
        Index(None, "is_deleted", "updated_at"),
        # ids are never reused, so stale rank rows cannot attach to new lists
        {"sqlite_autoincrement": True},
    )

    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    color: Mapped[str] = mapped_column(String(32), default="", nullable=False)
    image: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    icon: Mapped[str] = mapped_column(String(32), default="", nullable=False)


class DBReadingListEntry(ReadingListsRecordBase):
    """A page in a list; user_id duplicates the owning list's user_id."""

    __tablename__ = "reading_list_entries"
    __table_args__ = (
        UniqueConstraint("list_id", "project", "title"),
        Index(None, "user_id"),
        Index(None, "project", "title"),
        Index(None, "is_deleted", "updated_at"),
        {"sqlite_autoincrement": True},
    )

    list_id: Mapped[int] = mapped_column(ForeignKey("reading_lists.id"), nullable=False)
    project: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)


class DBReadingListSortkey(ReadingListsDBBase):
    """Rank of a list among its owner's lists."""

    __tablename__ = "reading_list_sortkeys"

    list_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    sort_index: Mapped[int] = mapped_column(Integer, nullable=False)


class DBReadingListEntrySortkey(ReadingListsDBBase):
    """Rank of an entry within its list."""

    __tablename__ = "reading_list_entry_sortkeys"

    entry_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    sort_index: Mapped[int] = mapped_column(Integer, nullable=False)


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Initialize database schema.

    Creates all tables if they don't exist.
    This is a safe operation that won't affect existing data.

    Args:
        engine: Engine to initialize (uses the global engine if None)
    """
    if engine is None:
        from readinglists.infrastructure.persistence.database.db_connection import (
            get_engine,
        )

        engine = get_engine()

    try:
        async with engine.connect() as conn:
            existing_tables = await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).get_table_names()
            )
            if existing_tables:
                logger.info(f"Found existing tables: {existing_tables}")

        # Create tables - SQLAlchemy will skip tables that already exist
        async with engine.begin() as conn:
            await conn.run_sync(ReadingListsDBBase.metadata.create_all)
            logger.info("Database schema verified - all tables exist")

    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise
    else:
        logger.info("Database schema initialization complete")
