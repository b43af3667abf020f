"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var, require_env_var, require_env_vars
from .errors import ConfigurationError, InvalidDefinitionError, MissingConfigurationError
from .http_resilience import (
    CacheConfig,
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
    get_feed_resilience_config,
)
from .importer import (
    FetcherSection,
    ImporterDefinition,
    ImporterSection,
    MappingSection,
    ParserSection,
    SourceSection,
    TargetSection,
    get_importer_config_path,
    load_importer_definition,
    parse_importer_definition,
)
from .logging import configure_logging
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_database_uri,
    get_storage_config,
)

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "FetcherSection",
    "ImporterDefinition",
    "ImporterSection",
    "InvalidDefinitionError",
    "MappingSection",
    "MissingConfigurationError",
    "ParserSection",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SourceSection",
    "StorageConfig",
    "TargetSection",
    "configure_logging",
    "get_database_config",
    "get_database_uri",
    "get_feed_resilience_config",
    "get_importer_config_path",
    "load_importer_definition",
    "optional_env_var",
    "parse_importer_definition",
    "require_env_var",
    "require_env_vars",
]
