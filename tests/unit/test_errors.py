"""Tests for repository error codes and messages."""

import pytest

from readinglists.domain import errors


class TestRepositoryErrors:
    """Test the caller-facing error hierarchy."""

    @pytest.mark.parametrize(
        "error_class",
        [
            errors.UserRequiredError,
            errors.AlreadySetUpError,
            errors.NotSetUpError,
            errors.NoSuchListError,
            errors.NotOwnListError,
            errors.ListDeletedError,
            errors.NoSuchListEntryError,
            errors.NotOwnListEntryError,
            errors.ListEntryDeletedError,
            errors.EntryNotInListError,
            errors.CannotDeleteDefaultListError,
            errors.DuplicatePageError,
            errors.EmptyListIdsError,
            errors.EmptyOrderError,
        ],
    )
    def test_codes_are_distinct_and_prefixed(self, error_class):
        assert issubclass(error_class, errors.ReadingListRepositoryError)
        assert error_class.code.startswith("readinglists-db-error-")

    def test_codes_are_unique(self):
        codes = [
            cls.code for cls in errors.ReadingListRepositoryError.__subclasses__()
        ]
        assert len(codes) == len(set(codes))

    def test_offending_id_and_message(self):
        error = errors.NoSuchListError(42)

        assert error.offending_id == 42
        assert error.params == (42,)
        assert str(error) == "No such list: 42"

    def test_duplicate_page_message(self):
        error = errors.DuplicatePageError(5, "en.wikipedia.org", "Dog")

        assert str(error) == "Page en.wikipedia.org:Dog is already in list 5"
        assert error.offending_id == 5

    def test_error_without_params(self):
        error = errors.EmptyOrderError()

        assert error.offending_id is None
        assert str(error) == "The new order must not be empty"

    def test_inconsistent_state_is_not_a_repository_error(self):
        assert not issubclass(
            errors.InconsistentStateError, errors.ReadingListRepositoryError
        )
        assert issubclass(errors.InconsistentStateError, RuntimeError)
