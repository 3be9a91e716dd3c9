"""Reading list repository and mappers."""

from .core import ReadingListRepository
from .mapper import ReadingListEntryMapper, ReadingListMapper

__all__ = [
    "ReadingListEntryMapper",
    "ReadingListMapper",
    "ReadingListRepository",
]
