"""Maintenance sweep results."""

from typing import Self

from attrs import define


@define(frozen=True, slots=True)
class PurgeStats:
    """Row counts removed by purge sweeps."""

    lists: int = 0
    entries: int = 0
    list_sortkeys: int = 0
    entry_sortkeys: int = 0
    batches: int = 0

    @property
    def total(self) -> int:
        """Total rows removed across all record sets."""
        return self.lists + self.entries + self.list_sortkeys + self.entry_sortkeys

    def __add__(self, other: Self) -> Self:
        return self.__class__(
            lists=self.lists + other.lists,
            entries=self.entries + other.entries,
            list_sortkeys=self.list_sortkeys + other.list_sortkeys,
            entry_sortkeys=self.entry_sortkeys + other.entry_sortkeys,
            batches=self.batches + other.batches,
        )
