"""Retention window helpers for soft-deleted reading list data."""

from datetime import datetime, timedelta

from readinglists.domain.entities import as_utc, utc_now


def get_deleted_expiry(retention_days: int, now: datetime | None = None) -> datetime:
    """Cutoff before which soft-deleted lists and entries may be purged.

    Args:
        retention_days: How long deleted rows are kept for syncing clients
        now: Reference time (defaults to the current UTC time)

    Raises:
        ValueError: If retention_days is not positive
    """
    if retention_days <= 0:
        raise ValueError(f"Retention must be positive, got {retention_days} days")
    return as_utc(now or utc_now()) - timedelta(days=retention_days)
