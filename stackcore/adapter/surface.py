"""Export surfaces: where an OutputSet gets published.

A surface validates the complete OutputSet before touching its target,
then merges it in one pass (existing names are overwritten).
"""
from __future__ import annotations

from types import ModuleType
from typing import Any, Callable, Dict, MutableMapping, Optional

from .exceptions import InvalidOutputShapeError
from .outputs import OutputSet

Exporter = Callable[[str, Any], None]

_MISSING = object()


class ExportSurface:
    """Base surface. Subclasses implement ``_write``."""

    kind = "abstract"
    # False when a write cannot be undone (pulumi.export)
    reversible = True

    def __init__(self) -> None:
        self._published: Dict[str, Any] = {}

    def check(self, outputs: OutputSet) -> None:
        """Raise before any mutation if ``outputs`` cannot be published."""

    def _write(self, outputs: OutputSet) -> None:  # pragma: no cover
        raise NotImplementedError

    def merge(self, outputs: OutputSet) -> list[str]:
        """Publish ``outputs``; return names that replaced earlier values."""
        self.check(outputs)
        overwritten = [n for n in outputs if n in self._existing_names()]
        self._write(outputs)
        self._published.update(outputs.to_dict())
        return overwritten

    def _existing_names(self) -> set[str]:
        return set(self._published)

    def _capture(self, outputs: OutputSet) -> Any:
        """State ``_restore`` needs to undo a merge of ``outputs``."""
        return dict(self._published)

    def _restore(self, state: Any) -> None:
        self._published = state

    def snapshot(self) -> Dict[str, Any]:
        """Names published through this surface mapped to their values."""
        return dict(self._published)


def _capture_names(ns: MutableMapping[str, Any], names: list[str]) -> dict:
    return {n: ns.get(n, _MISSING) for n in names}


def _restore_names(ns: MutableMapping[str, Any], prior: dict) -> None:
    for name, value in prior.items():
        if value is _MISSING:
            ns.pop(name, None)
        else:
            ns[name] = value


class DictSurface(ExportSurface):
    kind = "dict"

    def __init__(self, target: Optional[MutableMapping[str, Any]] = None):
        super().__init__()
        self.target: MutableMapping[str, Any] = (
            target if target is not None else {}
        )

    def _existing_names(self) -> set[str]:
        return set(self.target)

    def _write(self, outputs: OutputSet) -> None:
        self.target.update(outputs.to_dict())

    def _capture(self, outputs: OutputSet) -> Any:
        return (
            super()._capture(outputs),
            _capture_names(self.target, list(outputs)),
        )

    def _restore(self, state: Any) -> None:
        published, prior = state
        super()._restore(published)
        _restore_names(self.target, prior)

    def snapshot(self) -> Dict[str, Any]:
        return dict(self.target)


def _is_dunder(name: str) -> bool:
    return len(name) > 4 and name.startswith("__") and name.endswith("__")


class ModuleSurface(ExportSurface):
    """Publishes into a module's globals and lists the names in ``__all__``."""

    kind = "module"

    def __init__(self, module: ModuleType):
        super().__init__()
        self.module = module

    def check(self, outputs: OutputSet) -> None:
        reserved = [n for n in outputs if _is_dunder(n)]
        if reserved:
            raise InvalidOutputShapeError(
                "output names collide with module dunders: "
                + ", ".join(reserved),
                "output-name-reserved",
            )

    def _existing_names(self) -> set[str]:
        return set(vars(self.module))

    def _write(self, outputs: OutputSet) -> None:
        ns = vars(self.module)
        ns.update(outputs.to_dict())
        exported = list(ns.get("__all__", ()))
        exported.extend(n for n in outputs if n not in exported)
        ns["__all__"] = exported

    def _capture(self, outputs: OutputSet) -> Any:
        names = list(outputs) + ["__all__"]
        return (
            super()._capture(outputs),
            _capture_names(vars(self.module), names),
        )

    def _restore(self, state: Any) -> None:
        published, prior = state
        super()._restore(published)
        _restore_names(vars(self.module), prior)

    def snapshot(self) -> Dict[str, Any]:
        ns = vars(self.module)
        return {n: ns[n] for n in self._published if n in ns}


class PulumiSurface(ExportSurface):
    """Stack outputs via ``pulumi.export`` (requires the ``pulumi`` extra)."""

    kind = "pulumi"
    reversible = False

    def __init__(self, exporter: Optional[Exporter] = None):
        super().__init__()
        self._exporter = exporter

    def _resolve_exporter(self) -> Exporter:
        if self._exporter is None:
            import pulumi  # local import: optional dependency

            self._exporter = pulumi.export
        return self._exporter

    def check(self, outputs: OutputSet) -> None:
        # missing pulumi install fails here, before anything is written
        self._resolve_exporter()

    def _write(self, outputs: OutputSet) -> None:
        export = self._resolve_exporter()
        for name, value in outputs.items():
            export(name, value)


class NullSurface(ExportSurface):
    """Evaluate-only runs: remembers outputs, publishes nowhere."""

    kind = "none"

    def _write(self, outputs: OutputSet) -> None:
        return None


class FanoutSurface(ExportSurface):
    """Publishes the same OutputSet into several surfaces.

    Every member is checked before the first one is written. Members that
    cannot be undone are written first; when a later member fails, the
    members already written are restored and the error is re-raised.
    """

    def __init__(self, *surfaces: ExportSurface):
        super().__init__()
        self.surfaces = surfaces
        self.kind = "+".join(s.kind for s in surfaces) or "none"

    def check(self, outputs: OutputSet) -> None:
        for s in self.surfaces:
            s.check(outputs)

    def merge(self, outputs: OutputSet) -> list[str]:
        self.check(outputs)
        overwritten: list[str] = []
        written: list[tuple[ExportSurface, Any]] = []
        try:
            for s in sorted(self.surfaces, key=lambda m: m.reversible):
                state = s._capture(outputs)
                names = s.merge(outputs)
                written.append((s, state))
                overwritten.extend(n for n in names if n not in overwritten)
        except Exception:
            for s, state in reversed(written):
                s._restore(state)
            raise
        self._published.update(outputs.to_dict())
        return overwritten


def publish(outputs: OutputSet, surface: ExportSurface) -> list[str]:
    """Merge ``outputs`` into ``surface``; return the overwritten names."""
    return surface.merge(outputs)


__all__ = [
    "ExportSurface",
    "DictSurface",
    "ModuleSurface",
    "PulumiSurface",
    "NullSurface",
    "FanoutSurface",
    "publish",
]
