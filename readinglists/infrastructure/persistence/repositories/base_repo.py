"""Repository layer base classes for SQLAlchemy 2.0 async repositories."""

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Protocol, TypeVar, cast

from attrs import define
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from readinglists.config import get_logger
from readinglists.infrastructure.persistence.database.db_models import (
    ReadingListsRecordBase,
)

# Type variables with proper constraints
TDBModel = TypeVar("TDBModel", bound=ReadingListsRecordBase)
TDomainModel = TypeVar("TDomainModel")

logger = get_logger(__name__)

# -------------------------------------------------------------------------
# COMMON UTILITIES
# -------------------------------------------------------------------------


def filter_active(model_class: type[ReadingListsRecordBase]) -> ColumnElement:
    """Return a filter expression for active (non-deleted) entities."""
    return model_class.is_deleted == False  # noqa: E712


def filter_deleted(model_class: type[ReadingListsRecordBase]) -> ColumnElement:
    """Return a filter expression for soft-deleted entities."""
    return model_class.is_deleted == True  # noqa: E712


def ranked(rank_column: Any, id_column: Any) -> tuple[ColumnElement, ...]:
    """ORDER BY clauses putting unranked rows first, then by rank, then by id.

    Spelled without NULLS FIRST so it sorts the same on every backend.
    """
    return (rank_column.is_not(None), rank_column, id_column)


class ModelMapper[TDBModel: ReadingListsRecordBase, TDomainModel](Protocol):
    """Protocol for mapping persistence models to domain models."""

    @staticmethod
    async def to_domain(db_model: TDBModel) -> TDomainModel:
        """Convert database model to domain model."""
        ...

    @staticmethod
    async def map_collection(
        db_models: Sequence[TDBModel],
    ) -> list[TDomainModel]:
        """Map a collection of DB models to domain models."""
        ...


@define(frozen=True, slots=True)
class BaseModelMapper[TDBModel: ReadingListsRecordBase, TDomainModel]:
    """Base implementation of ModelMapper with common functionality.

    Usage:
        @define(frozen=True, slots=True)
        class ListMapper(BaseModelMapper[DBReadingList, ReadingList]):
            @staticmethod
            async def to_domain(db_model: DBReadingList) -> ReadingList:
                return ReadingList(...)
    """

    @staticmethod
    async def to_domain(db_model: TDBModel) -> TDomainModel:
        raise NotImplementedError("Subclasses must implement to_domain")

    @classmethod
    async def map_collection(
        cls,
        db_models: Sequence[TDBModel],
    ) -> list[TDomainModel]:
        """Map a collection of DB models to domain models.

        Uses cls.to_domain so the subclass implementation is called.
        """
        return [await cls.to_domain(db_model) for db_model in db_models]


class BaseRepository[TDBModel: ReadingListsRecordBase, TDomainModel]:
    """Base repository for database operations with SQLAlchemy 2.0 best practices."""

    def __init__(
        self,
        session: AsyncSession,
        model_class: type[TDBModel],
        mapper: ModelMapper[TDBModel, TDomainModel],
    ) -> None:
        """Initialize repository with session and model mappings."""
        self.session = session
        self.model_class = model_class
        self.mapper = mapper
        logger.debug(
            f"Initialized {self.__class__.__name__} for {model_class.__name__}",
        )

    # -------------------------------------------------------------------------
    # SELECT STATEMENT BUILDERS
    # -------------------------------------------------------------------------

    def select(self, *columns: Any) -> Select[tuple[Any, ...]]:
        """Create select statement for active records."""
        stmt = select(*columns) if columns else select(self.model_class)
        return stmt.where(filter_active(self.model_class))

    def paginate(self, stmt: Select, limit: int, offset: int = 0) -> Select:
        """Add limit/offset pagination to a select statement."""
        return stmt.limit(limit).offset(max(offset, 0))

    # -------------------------------------------------------------------------
    # DIRECT DATABASE OPERATIONS (non-decorated helpers)
    # -------------------------------------------------------------------------

    async def _execute_query(
        self,
        stmt: Select,
        session: AsyncSession | None = None,
    ) -> list[Any]:
        """Execute an entity query and return all results.

        Bulk UPDATE statements bypass the identity map, so loaded rows always
        overwrite any instance already in the session.
        """
        result = await (session or self.session).execute(
            stmt.execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def _execute_ids(
        self,
        stmt: Select,
        session: AsyncSession | None = None,
    ) -> list[int]:
        """Execute a single-column query and return its values."""
        result = await (session or self.session).scalars(stmt)
        return list(result.all())

    async def execute_transaction[T](
        self,
        operation: Callable[[], T | Awaitable[T]],
    ) -> T:
        """Execute operation within a savepoint. Returns operation result."""
        async with self.session.begin_nested():
            if inspect.iscoroutinefunction(operation):
                return await operation()

            result = operation()
            if asyncio.iscoroutine(result):
                return await result

            return cast("T", result)
