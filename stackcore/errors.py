"""Central error taxonomy for adapter failures."""
from __future__ import annotations

_ALLOWED_ERROR_TYPES = {
    # definition.load
    "module-not-found",
    "module-import-failed",
    "checksum-mismatch",
    "manifest-invalid",
    # entry.resolve
    "entry-point-missing",
    "entry-point-not-callable",
    "entry-point-signature",
    # entry.invoke
    "entry-raised",
    # outputs
    "output-not-mapping",
    "output-key-invalid",
    "output-value-unserializable",
    "output-name-reserved",
    "export-failed",
    # config
    "config-invalid",
    # infra
    "event-handler-error",
}

PHASES = (
    "definition.load",
    "entry.resolve",
    "entry.invoke",
    "outputs.publish",
    "config",
)


def validate_error_type(code: str) -> str:
    assert (
        code in _ALLOWED_ERROR_TYPES
    ), f"Unknown error_type '{code}' (not in taxonomy)"
    return code


def map_exception(e: BaseException, phase: str) -> str:
    """Classify an exception raised during ``phase`` into a taxonomy code.

    Adapter exceptions carry their own code; anything else is classified
    by phase (entry failures are the caller's own exceptions).
    """
    code = getattr(e, "error_type", None)
    if isinstance(code, str) and code in _ALLOWED_ERROR_TYPES:
        return code
    if phase == "definition.load":
        if isinstance(e, (FileNotFoundError, ModuleNotFoundError)):
            return "module-not-found"
        return "module-import-failed"
    if phase == "entry.resolve":
        return "entry-point-missing"
    if phase == "entry.invoke":
        return "entry-raised"
    if phase == "outputs.publish":
        return "export-failed"
    if phase == "config":
        return "config-invalid"
    return "entry-raised"


__all__ = ["validate_error_type", "map_exception", "PHASES"]
