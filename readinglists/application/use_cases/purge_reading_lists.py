"""Scheduled maintenance: purge old soft-deleted reading list data.

Removes lists and entries that were soft-deleted before the retention cutoff,
then removes rank rows left behind by any hard delete. Runs with the system
identity, so it touches every user's data.
"""

from datetime import datetime

from attrs import define, field

from readinglists.application.utilities.retention import get_deleted_expiry
from readinglists.config import get_logger, settings
from readinglists.domain.entities import PurgeStats, as_utc, utc_now
from readinglists.domain.repositories import Clock, UnitOfWorkProtocol

logger = get_logger(__name__)


@define(frozen=True, slots=True)
class PurgeReadingListsCommand:
    """Command for a purge run.

    Without an explicit cutoff the configured retention window applies.
    """

    before: datetime | None = None


@define(frozen=True, slots=True)
class PurgeReadingListsResult:
    """Cutoff used and rows removed by a purge run."""

    cutoff: datetime
    stats: PurgeStats

    @property
    def total_purged(self) -> int:
        return self.stats.total


def _default_retention_days() -> int:
    return settings.readinglists.deleted_retention_days


@define(slots=True)
class PurgeReadingListsUseCase:
    """Use case for the scheduled purge of deleted reading list data."""

    retention_days: int = field(factory=_default_retention_days)
    clock: Clock = utc_now

    def resolve_cutoff(self, command: PurgeReadingListsCommand) -> datetime:
        """Cutoff for a command.

        Raises:
            ValueError: If an explicit cutoff is not in the past
        """
        now = as_utc(self.clock())
        if command.before is None:
            return get_deleted_expiry(self.retention_days, now)

        cutoff = as_utc(command.before)
        if cutoff >= now:
            # A cutoff at or after now would purge everything deleted so far
            raise ValueError(
                f"Invalid timestamp: {cutoff.isoformat()} is not in the past"
            )
        return cutoff

    async def execute(
        self, command: PurgeReadingListsCommand, uow: UnitOfWorkProtocol
    ) -> PurgeReadingListsResult:
        """Execute the purge.

        Args:
            command: Purge parameters
            uow: UnitOfWork for transaction management and repository access

        Returns:
            Cutoff and row counts of the run

        Raises:
            ValueError: If an explicit cutoff is not in the past
        """
        cutoff = self.resolve_cutoff(command)

        with logger.contextualize(operation="purge_reading_lists"):
            logger.info(f"Purging reading list data deleted before {cutoff.isoformat()}")

            async with uow:
                repo = uow.get_reading_list_repository()
                deleted = await repo.purge_old_deleted(cutoff)
                sortkeys = await repo.purge_sortkeys()

            stats = deleted + sortkeys
            logger.info(
                f"Purge complete: {stats.lists} lists, {stats.entries} entries, "
                f"{stats.list_sortkeys + stats.entry_sortkeys} sortkeys",
                batches=stats.batches,
            )

        return PurgeReadingListsResult(cutoff=cutoff, stats=stats)
