"""Output adapter package.

Loads a compiled definition module, invokes its zero-argument entry and
publishes the returned mapping (an OutputSet) into an export surface.
"""
from __future__ import annotations

from .exceptions import (  # noqa: F401
    AdapterError,
    InvalidEntryPointError,
    InvalidOutputShapeError,
    ModuleLoadError,
)
from .loader import compute_sha256, load_definition, resolve_entry  # noqa: F401
from .outputs import OutputSet  # noqa: F401
from .runner import (  # noqa: F401
    DefinitionTarget,
    OutputAdapter,
    evaluate,
    run_adapter,
    surface_for,
)
from .surface import (  # noqa: F401
    DictSurface,
    ExportSurface,
    FanoutSurface,
    ModuleSurface,
    NullSurface,
    PulumiSurface,
    publish,
)

__all__ = [
    "AdapterError",
    "InvalidEntryPointError",
    "InvalidOutputShapeError",
    "ModuleLoadError",
    "compute_sha256",
    "load_definition",
    "resolve_entry",
    "OutputSet",
    "DefinitionTarget",
    "OutputAdapter",
    "evaluate",
    "run_adapter",
    "surface_for",
    "DictSurface",
    "ExportSurface",
    "ModuleSurface",
    "NullSurface",
    "FanoutSurface",
    "PulumiSurface",
    "publish",
]
