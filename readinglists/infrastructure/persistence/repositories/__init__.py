"""Repository layer for database operations with SQLAlchemy 2.0."""

# Re-export core components
from readinglists.infrastructure.persistence.repositories.base_repo import (
    BaseModelMapper,
    BaseRepository,
    ModelMapper,
    filter_active,
    filter_deleted,
    ranked,
)
from readinglists.infrastructure.persistence.repositories.reading_list import (
    ReadingListEntryMapper,
    ReadingListMapper,
    ReadingListRepository,
)
from readinglists.infrastructure.persistence.repositories.repo_decorator import (
    db_operation,
)

# Define public API
__all__ = [
    "BaseModelMapper",
    "BaseRepository",
    "ModelMapper",
    "ReadingListEntryMapper",
    "ReadingListMapper",
    "ReadingListRepository",
    "db_operation",
    "filter_active",
    "filter_deleted",
    "ranked",
]
