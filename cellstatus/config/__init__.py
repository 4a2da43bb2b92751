"""YAML configuration for the cell status server."""

from cellstatus.config.settings import (
    DatabaseConfig,
    ServiceConfig,
    get_database_config,
    get_service_config,
    read_config,
)

__all__ = [
    "DatabaseConfig",
    "ServiceConfig",
    "get_database_config",
    "get_service_config",
    "read_config",
]
