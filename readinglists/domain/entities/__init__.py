"""Core domain entities representing reading lists."""

from .maintenance import PurgeStats
from .reading_list import ReadingList, ReadingListEntry
from .shared import as_utc, ensure_utc, utc_now

__all__ = [
    # Reading list entities
    "ReadingList",
    "ReadingListEntry",
    # Maintenance results
    "PurgeStats",
    # Shared utilities
    "as_utc",
    "ensure_utc",
    "utc_now",
]
