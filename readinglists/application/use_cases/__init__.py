"""Application use cases."""

from .purge_reading_lists import (
    PurgeReadingListsCommand,
    PurgeReadingListsResult,
    PurgeReadingListsUseCase,
)

__all__ = [
    "PurgeReadingListsCommand",
    "PurgeReadingListsResult",
    "PurgeReadingListsUseCase",
]
