"""Definition registry.

Each stack directory under ``definitions.registry_dir`` carries a
``stack.yaml`` naming its compiled definition module, the entry attribute
and an optional sha256 of the build artifact.
"""
from __future__ import annotations

from .loader import (  # noqa: F401
    MANIFEST_FILENAME,
    clear_manifest_cache,
    get_manifest,
    load_manifest_file,
    load_manifests,
    verify_definition_checksum,
)
from .manifest import DefinitionManifest  # noqa: F401

__all__ = [
    "MANIFEST_FILENAME",
    "DefinitionManifest",
    "clear_manifest_cache",
    "get_manifest",
    "load_manifest_file",
    "load_manifests",
    "verify_definition_checksum",
]
