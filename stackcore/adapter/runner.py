"""OutputAdapter: load → resolve entry → evaluate → publish.

One linear pass per ``run()``. No retries and no recovery: every failure
is reported (event + metrics + log) and re-raised to the caller. The
entry function's own exceptions are re-raised unchanged.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any, Optional

from stackcore import metrics
from stackcore.errors import map_exception
from stackcore.events import (
    AdapterFailed,
    DefinitionLoaded,
    DefinitionLoadFailed,
    OutputsEvaluated,
    OutputsPublished,
    emit,
)

from .exceptions import AdapterError, ModuleLoadError
from .loader import EntryPoint, load_definition, resolve_entry
from .outputs import OutputSet
from .surface import (
    DictSurface,
    ExportSurface,
    NullSurface,
    PulumiSurface,
    publish,
)

logger = logging.getLogger("stackout.adapter")


@dataclass(frozen=True)
class DefinitionTarget:
    """Where the definition module lives and which entry it exposes."""

    definition: str
    entry: str = "stack"
    base_dir: Optional[str] = None
    checksum_sha256: Optional[str] = None
    stack_id: Optional[str] = None

    @classmethod
    def from_config(
        cls, adapter_cfg: Any, repo_root: str | Path = "."
    ) -> "DefinitionTarget":
        """Build from an AdapterConfig; ``adapter.stack`` wins when set."""
        if adapter_cfg.stack:
            from stackcore.definitions import get_manifest  # local import

            manifest = get_manifest(adapter_cfg.stack, repo_root)
            return cls.from_manifest(manifest)
        return cls(
            definition=adapter_cfg.definition,
            entry=adapter_cfg.entry,
            base_dir=adapter_cfg.base_dir,
        )

    @classmethod
    def from_manifest(cls, manifest: Any) -> "DefinitionTarget":
        return cls(
            definition=manifest.module,
            entry=manifest.entry,
            base_dir=str(manifest.base_dir) if manifest.base_dir else None,
            checksum_sha256=manifest.checksum_sha256,
            stack_id=manifest.id,
        )


def evaluate(entry: EntryPoint, require_serializable: bool = False) -> OutputSet:
    """Call ``entry()`` and snapshot its mapping as an OutputSet.

    Pure with respect to export surfaces. Exceptions from the entry
    propagate unchanged.
    """
    result = entry()
    return OutputSet.from_result(
        result, require_serializable=require_serializable
    )


def surface_for(kind: str) -> ExportSurface:
    """Default surface for an ``adapter.export`` setting.

    ``module`` needs the program module to publish into; build a
    ``ModuleSurface`` (or use ``stackhost.program``) for that case.
    """
    if kind == "pulumi":
        return PulumiSurface()
    if kind == "none":
        return NullSurface()
    if kind == "dict":
        return DictSurface()
    raise ValueError(f"no default export surface for {kind!r}")


class OutputAdapter:
    def __init__(
        self,
        target: DefinitionTarget,
        require_serializable: bool = False,
    ) -> None:
        self.target = target
        self.require_serializable = require_serializable

    @classmethod
    def from_config(
        cls, cfg: Any = None, repo_root: str | Path = "."
    ) -> "OutputAdapter":
        if cfg is None:
            from stackcore.config import get_config  # local import

            cfg = get_config()
        return cls(
            DefinitionTarget.from_config(cfg.adapter, repo_root),
            require_serializable=cfg.adapter.require_serializable,
        )

    # --- Phases -------------------------------------------------------------
    def load(self) -> ModuleType:
        t = self.target
        t0 = time.time()
        try:
            module = load_definition(
                t.definition, t.base_dir, t.checksum_sha256
            )
        except ModuleLoadError as e:
            metrics.inc_definition_load("error")
            emit(
                DefinitionLoadFailed(
                    definition=t.definition,
                    error_type=e.error_type,
                    message=str(e),
                    stack_id=t.stack_id,
                )
            )
            raise
        load_ms = int((time.time() - t0) * 1000)
        metrics.inc_definition_load("ok")
        emit(
            DefinitionLoaded(
                definition=t.definition,
                module_name=module.__name__,
                load_ms=load_ms,
                stack_id=t.stack_id,
            )
        )
        logger.debug(
            "[definition-loaded] definition=%s module=%s load_ms=%d",
            t.definition,
            module.__name__,
            load_ms,
        )
        return module

    def resolve(self, module: ModuleType) -> EntryPoint:
        return resolve_entry(module, self.target.entry)

    def evaluate(self, module: Optional[ModuleType] = None) -> OutputSet:
        """Load (unless given) and evaluate; no export surface involved."""
        if module is None:
            module = self.load()
        return self._invoke(self.resolve(module))

    def _invoke(self, entry: EntryPoint) -> OutputSet:
        t0 = time.time()
        outputs = evaluate(entry, self.require_serializable)
        eval_ms = int((time.time() - t0) * 1000)
        metrics.observe("entry_eval_ms", eval_ms)
        emit(
            OutputsEvaluated(
                definition=self.target.definition,
                entry=self.target.entry,
                output_count=len(outputs),
                eval_ms=eval_ms,
                output_names=outputs.names(),
            )
        )
        return outputs

    # --- Full run -----------------------------------------------------------
    def run(self, surface: Optional[ExportSurface] = None) -> OutputSet:
        surface = surface if surface is not None else DictSurface()
        phase = "definition.load"
        try:
            module = self.load()
            phase = "entry.resolve"
            entry = self.resolve(module)
            phase = "entry.invoke"
            outputs = self._invoke(entry)
            phase = "outputs.publish"
            overwritten = publish(outputs, surface)
        except Exception as e:
            self._report_failure(phase, e)
            raise
        metrics.inc_outputs_published(surface.kind, len(outputs))
        metrics.inc_adapter_run("ok")
        emit(
            OutputsPublished(
                surface=surface.kind,
                output_count=len(outputs),
                overwritten=overwritten or None,
            )
        )
        logger.info(
            "[adapter-run] definition=%s entry=%s outputs=%d surface=%s",
            self.target.definition,
            self.target.entry,
            len(outputs),
            surface.kind,
        )
        return outputs

    def _report_failure(self, phase: str, e: BaseException) -> None:
        error_type = map_exception(e, phase)
        metrics.inc_adapter_run("error", error_type)
        emit(
            AdapterFailed(
                definition=self.target.definition,
                phase=phase,
                error_type=error_type,
                message=str(e),
            )
        )
        if isinstance(e, AdapterError):
            logger.error(
                "[adapter-failed] definition=%s phase=%s error_type=%s %s",
                self.target.definition,
                phase,
                error_type,
                e,
            )
        else:
            logger.error(
                "[adapter-failed] definition=%s phase=%s error_type=%s",
                self.target.definition,
                phase,
                error_type,
                exc_info=True,
            )


def run_adapter(
    definition: str | Path,
    entry: str = "stack",
    surface: Optional[ExportSurface] = None,
    base_dir: str | Path | None = None,
    require_serializable: bool = False,
) -> OutputSet:
    """Functional shortcut around OutputAdapter.run."""
    adapter = OutputAdapter(
        DefinitionTarget(
            definition=str(definition),
            entry=entry,
            base_dir=str(base_dir) if base_dir is not None else None,
        ),
        require_serializable=require_serializable,
    )
    return adapter.run(surface)


__all__ = [
    "DefinitionTarget",
    "OutputAdapter",
    "evaluate",
    "run_adapter",
    "surface_for",
]
