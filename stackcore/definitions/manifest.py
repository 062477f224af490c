"""Definition manifest schema (stack.yaml)."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, PrivateAttr, field_validator

from stackcore.adapter.loader import is_path_target


class DefinitionManifest(BaseModel):
    id: str
    module: str = "generated/stack.py"
    entry: str = "stack"
    compiler: Optional[str] = None
    revision: Optional[str] = None
    checksum_sha256: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    _base_dir: Optional[Path] = PrivateAttr(default=None)

    @field_validator("id")
    @classmethod
    def _id_not_empty(cls, v: str) -> str:  # noqa: D401
        if not v.strip():
            raise ValueError("id cannot be empty")
        return v

    @field_validator("entry")
    @classmethod
    def _entry_identifier(cls, v: str) -> str:  # noqa: D401
        if not v.isidentifier():
            raise ValueError(f"entry must be an identifier, got {v!r}")
        return v

    @property
    def base_dir(self) -> Optional[Path]:
        """Directory holding the manifest (set by the registry loader)."""
        return self._base_dir

    def bind(self, base_dir: Path) -> "DefinitionManifest":
        self._base_dir = base_dir
        return self

    @property
    def is_file_module(self) -> bool:
        return is_path_target(self.module)

    def resolve_module_path(self) -> Optional[Path]:
        """Absolute module path for file modules, None for dotted names."""
        if not self.is_file_module:
            return None
        p = Path(self.module)
        if not p.is_absolute() and self._base_dir is not None:
            p = self._base_dir / p
        return p
