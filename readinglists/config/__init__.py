"""Configuration module for reading lists.

Public API:
----------
settings: Settings instance
    Pydantic settings object with nested configuration groups

resolve_database_url(config=None, replica=False) -> str | None
    Connection URL after cluster and database-name routing

is_central_deployment(config=None) -> bool
    Whether this deployment runs schema setup and scheduled maintenance

get_logger(name: str) -> Logger
    Get a context-aware logger for your module

setup_loguru_logger(verbose: bool = False) -> None
    Configure Loguru logger for the application
"""

from .logging import get_logger, setup_loguru_logger
from .settings import (
    Settings,
    is_central_deployment,
    resolve_database_url,
    settings,
)

__all__ = [
    "Settings",
    "get_logger",
    "is_central_deployment",
    "resolve_database_url",
    "settings",
    "setup_loguru_logger",
]
