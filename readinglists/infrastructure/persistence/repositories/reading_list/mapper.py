"""Reading list mappers for domain-persistence conversions."""

from attrs import define

from readinglists.domain.entities import ReadingList, ReadingListEntry
from readinglists.infrastructure.persistence.database.db_models import (
    DBReadingList,
    DBReadingListEntry,
)
from readinglists.infrastructure.persistence.repositories.base_repo import (
    BaseModelMapper,
)


@define(frozen=True, slots=True)
class ReadingListMapper(BaseModelMapper[DBReadingList, ReadingList]):
    """Maps list rows to domain lists."""

    @staticmethod
    async def to_domain(db_model: DBReadingList) -> ReadingList:
        return ReadingList(
            id=db_model.id,
            user_id=db_model.user_id,
            name=db_model.name,
            description=db_model.description or "",
            color=db_model.color or "",
            image=db_model.image or "",
            icon=db_model.icon or "",
            is_default=bool(db_model.is_default),
            is_deleted=bool(db_model.is_deleted),
            created_at=db_model.created_at,
            updated_at=db_model.updated_at,
        )


@define(frozen=True, slots=True)
class ReadingListEntryMapper(BaseModelMapper[DBReadingListEntry, ReadingListEntry]):
    """Maps entry rows to domain entries."""

    @staticmethod
    async def to_domain(db_model: DBReadingListEntry) -> ReadingListEntry:
        return ReadingListEntry(
            id=db_model.id,
            list_id=db_model.list_id,
            user_id=db_model.user_id,
            project=db_model.project,
            title=db_model.title,
            is_deleted=bool(db_model.is_deleted),
            created_at=db_model.created_at,
            updated_at=db_model.updated_at,
        )
