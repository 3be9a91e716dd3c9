"""Domain repository interfaces."""

from .interfaces import (
    Clock,
    ConnectionProviderProtocol,
    ReadConsistency,
    ReadingListRepositoryProtocol,
    UnitOfWorkProtocol,
)

__all__ = [
    "Clock",
    "ConnectionProviderProtocol",
    "ReadConsistency",
    "ReadingListRepositoryProtocol",
    "UnitOfWorkProtocol",
]
