"""Observability schemas (metrics + logging)."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class MetricsConfig(BaseModel):
    # exposes the snapshot on GET /metrics; recording is always on
    enabled: bool = True

    model_config = ConfigDict(extra="forbid")


class LoggingConfig(BaseModel):
    level: str = Field("info", pattern="^(debug|info|warn|error)$")
    format: str = Field("text", pattern="^(json|text)$")

    model_config = ConfigDict(extra="forbid")
