"""Per-section config schemas."""
from __future__ import annotations

from .adapter import AdapterConfig, DefinitionsConfig
from .observability import LoggingConfig, MetricsConfig

__all__ = [
    "AdapterConfig",
    "DefinitionsConfig",
    "LoggingConfig",
    "MetricsConfig",
]
