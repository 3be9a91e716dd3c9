"""Reading list domain entities.

Pure list and entry representations with zero persistence dependencies.
"""

from datetime import datetime

from attrs import define, field, validators

from .shared import ensure_utc


@define(frozen=True, slots=True)
class ReadingList:
    """A named, user-owned collection of page references.

    Every provisioned user has exactly one default list, which can never be
    deleted. Deleted lists stay visible to sync queries until purged.
    """

    id: int
    user_id: int
    name: str = field(validator=validators.instance_of(str))
    description: str = ""
    color: str = ""
    image: str = ""
    icon: str = ""
    is_default: bool = False
    is_deleted: bool = False
    created_at: datetime | None = field(default=None, converter=ensure_utc)
    updated_at: datetime | None = field(default=None, converter=ensure_utc)


@define(frozen=True, slots=True)
class ReadingListEntry:
    """A single page, identified by project and title, inside one list."""

    id: int
    list_id: int
    user_id: int
    project: str = field(validator=validators.instance_of(str))
    title: str = field(validator=validators.instance_of(str))
    is_deleted: bool = False
    created_at: datetime | None = field(default=None, converter=ensure_utc)
    updated_at: datetime | None = field(default=None, converter=ensure_utc)

    @property
    def page(self) -> tuple[str, str]:
        """The (project, title) pair that is unique within a list."""
        return (self.project, self.title)
