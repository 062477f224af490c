"""Adapter + definitions registry schemas."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AdapterConfig(BaseModel):
    definition: str = Field(
        "generated/stack.py",
        description="file path (relative to base_dir) or dotted module name",
    )
    entry: str = Field("stack", description="entry attribute name")
    stack: Optional[str] = Field(
        None, description="manifest id; overrides definition/entry"
    )
    base_dir: Optional[str] = Field(
        None, description="resolution root for relative paths (default cwd)"
    )
    require_serializable: bool = False
    export: str = Field("module", pattern="^(module|pulumi|none)$")

    model_config = ConfigDict(extra="forbid")


class DefinitionsConfig(BaseModel):
    registry_dir: str = "stacks"

    model_config = ConfigDict(extra="forbid")
