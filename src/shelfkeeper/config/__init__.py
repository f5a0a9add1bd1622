"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var
from .errors import ConfigurationError, MissingConfigurationError
from .google_books import CatalogConfig, get_catalog_config
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .library import ImportConfig, LinkConfig, get_import_config, get_link_config
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "CacheConfig",
    "CatalogConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "ImportConfig",
    "LinkConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "get_catalog_config",
    "get_database_config",
    "get_import_config",
    "get_link_config",
    "get_storage_config",
    "optional_env_var",
]
