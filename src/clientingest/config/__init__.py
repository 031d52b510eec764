"""Application configuration helpers."""

from __future__ import annotations

from .env import env_float, env_int, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import (
    CacheConfig,
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
    get_client_api_resilience,
)
from .ingestion import IngestionConfig, get_ingestion_config
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "IngestionConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "env_float",
    "env_int",
    "get_client_api_resilience",
    "get_database_config",
    "get_ingestion_config",
    "get_storage_config",
    "require_env_vars",
]
