"""Configuration management using Pydantic Settings.

Settings are loaded from environment variables and an optional ``.env`` file.
The configuration is organized into logical groups:
- DatabaseConfig: Primary/replica connection URLs, cluster routing and pooling
- ReadingListsConfig: Cluster/database routing, central deployment and purge policy
- LoggingConfig: Logging levels and log file location
"""

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url

# Flat variables are read from os.environ, so .env must be loaded first
load_dotenv()


class DatabaseConfig(BaseModel):
    """Database connection, replica and pooling configuration."""

    url: str = "sqlite+aiosqlite:///data/readinglists.db"
    replica_url: str | None = None
    # Named clusters for deployments that keep reading lists outside the main database
    cluster_urls: dict[str, str] = Field(default_factory=dict)
    cluster_replica_urls: dict[str, str] = Field(default_factory=dict)
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    replication_wait_timeout: float = 10.0
    replication_poll_interval: float = 0.1


class ReadingListsConfig(BaseModel):
    """Reading list storage routing and maintenance policy."""

    cluster: str | None = None
    database: str | None = None
    # Deployment responsible for schema setup and scheduled maintenance.
    # None means every deployment is central.
    central_deployment: str | None = None
    deleted_retention_days: int = 30
    purge_batch_size: int = 1000


class LoggingConfig(BaseModel):
    """Logging configuration for console and file output."""

    console_level: str = "INFO"
    file_level: str = "DEBUG"
    log_file: Path = Path("readinglists.log")
    real_time_debug: bool = True


class Settings(BaseSettings):
    """Main application settings with environment variable support.

    Environment variables can be set using flat naming or nested naming:
    - Flat: DATABASE_URL, CONSOLE_LOG_LEVEL, READINGLISTS_CLUSTER
    - Nested: DATABASE__URL, LOGGING__CONSOLE_LEVEL, READINGLISTS__CLUSTER
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    database: DatabaseConfig = DatabaseConfig()
    readinglists: ReadingListsConfig = ReadingListsConfig()
    logging: LoggingConfig = LoggingConfig()

    # Identifier of this deployment, compared against central_deployment
    deployment_id: str = "default"

    @model_validator(mode="before")
    @classmethod
    def transform_flat_env_vars(cls, data: Any) -> Any:
        """Map flat names (DATABASE_URL) onto the nested groups (database.url)."""
        if not isinstance(data, dict):
            return data

        mappings = {
            "database": {
                "database_url": "url",
                "database_replica_url": "replica_url",
                "database_echo": "echo",
                "database_pool_size": "pool_size",
                "database_max_overflow": "max_overflow",
                "database_pool_timeout": "pool_timeout",
                "database_pool_recycle": "pool_recycle",
            },
            "readinglists": {
                "readinglists_cluster": "cluster",
                "readinglists_database": "database",
                "readinglists_central_deployment": "central_deployment",
                "readinglists_deleted_retention_days": "deleted_retention_days",
                "readinglists_purge_batch_size": "purge_batch_size",
            },
            "logging": {
                "console_log_level": "console_level",
                "file_log_level": "file_level",
                "log_file": "log_file",
                "log_real_time_debug": "real_time_debug",
            },
        }

        transformed: dict[str, dict[str, Any]] = {}
        for group, group_mapping in mappings.items():
            for env_key, field_key in group_mapping.items():
                if env_key in data:
                    transformed.setdefault(group, {})[field_key] = data.pop(env_key)
                elif env_key.upper() in os.environ:
                    transformed.setdefault(group, {})[field_key] = os.environ[
                        env_key.upper()
                    ]

        for group, values in transformed.items():
            existing = data.get(group)
            if isinstance(existing, dict):
                values = {**existing, **values}
            data[group] = values

        return data


# Singleton instance for application use
settings = Settings()


def resolve_database_url(
    config: Settings | None = None, *, replica: bool = False
) -> str | None:
    """Resolve the connection URL for reading list storage.

    A configured cluster replaces the main database URL with the cluster's URL,
    and a configured database name replaces the database part of the URL.

    Args:
        config: Settings to resolve from (defaults to the global settings)
        replica: Resolve the replica URL instead of the primary

    Returns:
        Connection URL, or None when a replica is requested but not configured

    Raises:
        ValueError: If the configured cluster has no URL
    """
    config = config or settings
    db = config.database
    cluster = config.readinglists.cluster

    if cluster:
        urls = db.cluster_replica_urls if replica else db.cluster_urls
        if not replica and cluster not in urls:
            raise ValueError(f"No database URL configured for cluster '{cluster}'")
        url = urls.get(cluster)
    else:
        url = db.replica_url if replica else db.url

    if url is None:
        return None

    if config.readinglists.database:
        url = (
            make_url(url)
            .set(database=config.readinglists.database)
            .render_as_string(hide_password=False)
        )

    return url


def is_central_deployment(config: Settings | None = None) -> bool:
    """Whether this deployment owns schema setup and scheduled maintenance."""
    config = config or settings
    central = config.readinglists.central_deployment
    return central is None or central == config.deployment_id
