"""Reading list repository errors.

Every expected, caller-recoverable failure is a ``ReadingListRepositoryError``
subclass carrying a stable machine-readable ``code`` and the offending
identifiers in ``params``. The API layer maps these to user-facing messages.

``InconsistentStateError`` is outside that hierarchy: it signals
a broken internal invariant, not a bad request.
"""

from typing import Any, ClassVar


class ReadingListRepositoryError(Exception):
    """Base class for expected reading list repository failures."""

    code: ClassVar[str] = "readinglists-db-error"
    message: ClassVar[str] = "Reading list storage error"

    def __init__(self, *params: Any) -> None:
        self.params = params
        super().__init__(self.message.format(*params))

    @property
    def offending_id(self) -> Any:
        """First parameter of the error, usually the id that failed validation."""
        return self.params[0] if self.params else None


class UserRequiredError(ReadingListRepositoryError):
    code = "readinglists-db-error-user-required"
    message = "A user is required for this operation"


class AlreadySetUpError(ReadingListRepositoryError):
    code = "readinglists-db-error-already-set-up"
    message = "Reading lists are already set up for this user"


class NotSetUpError(ReadingListRepositoryError):
    code = "readinglists-db-error-not-set-up"
    message = "Reading lists are not set up for this user"


class NoSuchListError(ReadingListRepositoryError):
    code = "readinglists-db-error-no-such-list"
    message = "No such list: {0}"


class NotOwnListError(ReadingListRepositoryError):
    code = "readinglists-db-error-not-own-list"
    message = "List {0} does not belong to the current user"


class ListDeletedError(ReadingListRepositoryError):
    code = "readinglists-db-error-list-deleted"
    message = "List {0} has been deleted"


class NoSuchListEntryError(ReadingListRepositoryError):
    code = "readinglists-db-error-no-such-list-entry"
    message = "No such list entry: {0}"


class NotOwnListEntryError(ReadingListRepositoryError):
    code = "readinglists-db-error-not-own-list-entry"
    message = "List entry {0} does not belong to the current user"


class ListEntryDeletedError(ReadingListRepositoryError):
    code = "readinglists-db-error-list-entry-deleted"
    message = "List entry {0} has been deleted"


class EntryNotInListError(ReadingListRepositoryError):
    code = "readinglists-db-error-entry-not-in-list"
    message = "List entry {0} does not belong to the given list"


class CannotDeleteDefaultListError(ReadingListRepositoryError):
    code = "readinglists-db-error-cannot-delete-default-list"
    message = "The default list {0} cannot be deleted"


class DuplicatePageError(ReadingListRepositoryError):
    code = "readinglists-db-error-duplicate-page"
    message = "Page {1}:{2} is already in list {0}"


class EmptyListIdsError(ReadingListRepositoryError):
    code = "readinglists-db-error-empty-list-ids"
    message = "At least one list id is required"


class EmptyOrderError(ReadingListRepositoryError):
    code = "readinglists-db-error-empty-order"
    message = "The new order must not be empty"


class InconsistentStateError(RuntimeError):
    """A write affected no rows for a reason no precondition explains."""
