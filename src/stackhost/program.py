"""Stack program entry.

A stack program (e.g. a Pulumi ``__main__.py``) calls::

    from stackhost.program import export_outputs
    export_outputs(__name__)

which loads the compiled definition module next to the program, invokes
its entry and merges the returned outputs into the program's own module
globals (plus ``pulumi.export`` when ``adapter.export: pulumi``).
"""
from __future__ import annotations

import dataclasses
import sys
from pathlib import Path
from types import ModuleType
from typing import Any, Optional

from stackcore.adapter import (
    ExportSurface,
    FanoutSurface,
    ModuleSurface,
    NullSurface,
    OutputAdapter,
    OutputSet,
    PulumiSurface,
)
from stackcore.config import get_config
from stackcore.logs import configure_logging


def program_surface(module: ModuleType, export: str) -> ExportSurface:
    if export == "none":
        return NullSurface()
    if export == "pulumi":
        return FanoutSurface(PulumiSurface(), ModuleSurface(module))
    return ModuleSurface(module)


def export_outputs(
    module_name: str,
    cfg: Any = None,
    surface: Optional[ExportSurface] = None,
) -> OutputSet:
    """Run the adapter once and publish into ``sys.modules[module_name]``.

    Relative definition paths resolve against the program's directory
    unless ``adapter.base_dir`` is configured.
    """
    module = sys.modules[module_name]
    if cfg is None:
        cfg = get_config()
    configure_logging(cfg.logging)
    program_dir = _module_dir(module)
    adapter = OutputAdapter.from_config(cfg)
    if adapter.target.base_dir is None and program_dir is not None:
        adapter.target = dataclasses.replace(
            adapter.target, base_dir=str(program_dir)
        )
    if surface is None:
        surface = program_surface(module, cfg.adapter.export)
    return adapter.run(surface)


def _module_dir(module: ModuleType) -> Optional[Path]:
    file = getattr(module, "__file__", None)
    if not file:
        return None
    return Path(file).resolve().parent


__all__ = ["export_outputs", "program_surface"]
