"""Config subsystem public API.

Provides:
    get_config()   -> AggregatedConfig (adapter, definitions, logging, metrics)
    build_config() -> AggregatedConfig from an in-memory mapping
    as_dict()      -> dict representation
    ConfigError    -> raised on validation / unknown key
"""

from .loader import (  # noqa: F401
    AggregatedConfig,
    ConfigError,
    as_dict,
    build_config,
    clear_config_cache,
    get_config,
)

__all__ = [
    "AggregatedConfig",
    "ConfigError",
    "as_dict",
    "build_config",
    "clear_config_cache",
    "get_config",
]
