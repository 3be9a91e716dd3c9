"""Application utilities."""

from .retention import get_deleted_expiry

__all__ = ["get_deleted_expiry"]
