"""Definitions registry: reads every ``<registry_dir>/*/stack.yaml``."""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Dict, Iterator, Optional

import yaml
from yaml import YAMLError

from stackcore.adapter.exceptions import ModuleLoadError
from stackcore.adapter.loader import compute_sha256

from .manifest import DefinitionManifest

MANIFEST_FILENAME = "stack.yaml"

logger = logging.getLogger("stackout.definitions")

_registry_lock = threading.Lock()
_manifest_cache: Dict[Path, Dict[str, DefinitionManifest]] = {}


def _iter_manifest_files(registry_dir: Path) -> Iterator[Path]:
    for path in sorted(registry_dir.glob(f"*/{MANIFEST_FILENAME}")):
        if path.is_file():
            yield path


def load_manifest_file(path: Path) -> DefinitionManifest:
    raw_text = path.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(raw_text) or {}
    except YAMLError as e:
        raise ModuleLoadError(
            f"Invalid manifest {path}: {e}", "manifest-invalid"
        ) from e
    if not isinstance(data, dict):
        raise ModuleLoadError(
            f"Invalid manifest {path}: top level must be a mapping",
            "manifest-invalid",
        )
    try:
        manifest = DefinitionManifest(**data)
    except Exception as e:  # noqa: BLE001
        raise ModuleLoadError(
            f"Invalid manifest {path}: {e}", "manifest-invalid"
        ) from e
    return manifest.bind(path.parent.resolve())


def load_manifests(
    repo_root: str | Path = ".",
    registry_subdir: str = "stacks",
) -> Dict[str, DefinitionManifest]:
    """Load all manifests into an index keyed by id (thread-safe cache)."""
    root = (Path(repo_root) / registry_subdir).resolve()
    with _registry_lock:
        if root in _manifest_cache:
            return _manifest_cache[root]
        index: Dict[str, DefinitionManifest] = {}
        if root.exists():
            for mf in _iter_manifest_files(root):
                manifest = load_manifest_file(mf)
                if manifest.id in index:
                    raise ModuleLoadError(
                        f"Duplicate stack id in registry: {manifest.id}",
                        "manifest-invalid",
                    )
                index[manifest.id] = manifest
        logger.debug(
            "[definitions-loaded] root=%s count=%d", root, len(index)
        )
        _manifest_cache[root] = index
        return index


def get_manifest(
    stack_id: str,
    repo_root: str | Path = ".",
    registry_subdir: Optional[str] = None,
) -> DefinitionManifest:
    if registry_subdir is None:
        from stackcore.config import get_config  # local import

        registry_subdir = get_config().definitions.registry_dir
    manifests = load_manifests(repo_root, registry_subdir)
    try:
        return manifests[stack_id]
    except KeyError:
        raise ModuleLoadError(
            f"Unknown stack id: {stack_id}", "module-not-found"
        ) from None


def verify_definition_checksum(manifest: DefinitionManifest) -> bool:
    """Check a file module against its manifest checksum (no-op if unset)."""
    if not manifest.checksum_sha256:
        return True
    file_path = manifest.resolve_module_path()
    if file_path is None:
        raise ModuleLoadError(
            f"Checksum set for dotted module in manifest {manifest.id}",
            "manifest-invalid",
        )
    if file_path.is_dir():
        file_path = file_path / "__init__.py"
    if not file_path.exists():
        raise ModuleLoadError(
            f"Definition module not found: {file_path}", "module-not-found"
        )
    actual = compute_sha256(file_path)
    if actual.lower() != manifest.checksum_sha256.lower():
        raise ModuleLoadError(
            "Checksum mismatch for {id}: expected {exp} got {act}".format(
                id=manifest.id, exp=manifest.checksum_sha256, act=actual
            ),
            "checksum-mismatch",
        )
    return True


def clear_manifest_cache(repo_root: str | Path | None = None) -> None:
    """Clear cached manifest index.

    If repo_root provided, clear every registry cached under it; else clear
    all.
    """
    with _registry_lock:
        if repo_root is None:
            _manifest_cache.clear()
            return
        base = Path(repo_root).resolve()
        for key in [k for k in _manifest_cache if base in (k, *k.parents)]:
            _manifest_cache.pop(key, None)
