"""Definition module loading + entry resolution."""
from __future__ import annotations

import hashlib
import importlib
import importlib.util
import inspect
import sys
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Mapping

from .exceptions import InvalidEntryPointError, ModuleLoadError

EntryPoint = Callable[[], Mapping[str, Any]]

DEFINITION_PREFIX = "stackout_definition"


def compute_sha256(path: Path, chunk_size: int = 1024 * 1024) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            h.update(chunk)
    return h.hexdigest()


def is_path_target(target: str) -> bool:
    """True when ``target`` names a file/dir rather than a dotted module."""
    return (
        target.endswith(".py")
        or "/" in target
        or "\\" in target
        or target.startswith(".")
    )


def resolve_definition_path(
    target: str | Path, base_dir: str | Path | None = None
) -> Path:
    p = Path(target)
    if not p.is_absolute():
        p = Path(base_dir) / p if base_dir is not None else Path.cwd() / p
    return p


def _module_name_for(path: Path) -> str:
    digest = hashlib.sha256(str(path).encode("utf-8")).hexdigest()[:8]
    stem = "".join(c if c.isalnum() else "_" for c in path.stem)
    return f"{DEFINITION_PREFIX}_{stem}_{digest}"


def _load_from_file(path: Path, checksum_sha256: str | None) -> ModuleType:
    search_locations = None
    file_path = path
    if path.is_dir():
        file_path = path / "__init__.py"
        search_locations = [str(path)]
    if not file_path.is_file():
        raise ModuleLoadError(
            f"Definition module not found: {path}", "module-not-found"
        )
    if checksum_sha256:
        actual = compute_sha256(file_path)
        if actual.lower() != checksum_sha256.lower():
            raise ModuleLoadError(
                "Checksum mismatch for {p}: expected {exp} got {act}".format(
                    p=file_path, exp=checksum_sha256, act=actual
                ),
                "checksum-mismatch",
            )
    name = _module_name_for(path.resolve())
    spec = importlib.util.spec_from_file_location(
        name, file_path, submodule_search_locations=search_locations
    )
    if spec is None or spec.loader is None:
        raise ModuleLoadError(
            f"Cannot build import spec for {file_path}",
            "module-import-failed",
        )
    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        sys.modules.pop(name, None)
        raise ModuleLoadError(
            f"Definition module {file_path} failed to evaluate: {e}",
            "module-import-failed",
        ) from e
    return module


def _load_by_name(name: str) -> ModuleType:
    try:
        return importlib.import_module(name)
    except ModuleNotFoundError as e:
        # only a miss on the target itself counts as not-found
        if e.name and (name == e.name or name.startswith(e.name + ".")):
            raise ModuleLoadError(
                f"Definition module not found: {name}", "module-not-found"
            ) from e
        raise ModuleLoadError(
            f"Definition module {name} failed to import: {e}",
            "module-import-failed",
        ) from e
    except Exception as e:
        raise ModuleLoadError(
            f"Definition module {name} failed to import: {e}",
            "module-import-failed",
        ) from e


def load_definition(
    target: str | Path,
    base_dir: str | Path | None = None,
    checksum_sha256: str | None = None,
) -> ModuleType:
    """Load a definition module by file path or dotted module name.

    File targets are executed fresh on each call. A checksum only applies
    to file targets.
    """
    if isinstance(target, Path) or is_path_target(str(target)):
        path = resolve_definition_path(target, base_dir)
        return _load_from_file(path, checksum_sha256)
    if checksum_sha256:
        raise ModuleLoadError(
            f"Checksum given for dotted module '{target}' (file required)",
            "manifest-invalid",
        )
    return _load_by_name(str(target))


def resolve_entry(module: ModuleType, name: str = "stack") -> EntryPoint:
    """Return the module's zero-argument entry callable."""
    mod_name = getattr(module, "__name__", "?")
    if not hasattr(module, name):
        raise InvalidEntryPointError(
            f"Definition module {mod_name} has no entry '{name}'",
            "entry-point-missing",
        )
    entry = getattr(module, name)
    if not callable(entry):
        raise InvalidEntryPointError(
            f"Entry '{name}' in {mod_name} is not callable "
            f"({type(entry).__name__})",
            "entry-point-not-callable",
        )
    try:
        sig = inspect.signature(entry)
    except (TypeError, ValueError):  # builtins without signature metadata
        return entry
    required = [
        p.name
        for p in sig.parameters.values()
        if p.default is inspect.Parameter.empty
        and p.kind
        not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
    ]
    if required:
        raise InvalidEntryPointError(
            f"Entry '{name}' in {mod_name} requires arguments: "
            + ", ".join(required),
            "entry-point-signature",
        )
    return entry


__all__ = [
    "EntryPoint",
    "compute_sha256",
    "is_path_target",
    "load_definition",
    "resolve_definition_path",
    "resolve_entry",
]
