"""Adapter exception hierarchy.

Every AdapterError carries ``error_type`` (a code from stackcore.errors).
Exceptions raised by the entry function itself are never wrapped in these.
"""
from __future__ import annotations

from stackcore.errors import validate_error_type


class AdapterError(Exception):
    """Base adapter exception."""

    default_error_type = "module-import-failed"

    def __init__(self, message: str, error_type: str | None = None) -> None:
        super().__init__(message)
        self.error_type = validate_error_type(
            error_type or self.default_error_type
        )


class ModuleLoadError(AdapterError):
    """Definition module cannot be found or fails to evaluate.

    Typical reasons: missing file, import error in the generated code,
    checksum mismatch against its manifest.
    """

    default_error_type = "module-import-failed"


class InvalidEntryPointError(AdapterError):
    """Entry attribute is absent, not callable, or requires arguments."""

    default_error_type = "entry-point-missing"


class InvalidOutputShapeError(AdapterError):
    """Entry returned something other than a str-keyed mapping."""

    default_error_type = "output-not-mapping"


__all__ = [
    "AdapterError",
    "ModuleLoadError",
    "InvalidEntryPointError",
    "InvalidOutputShapeError",
]
