"""Definitions routes: list registry manifests, evaluate one on demand."""
from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from stackcore.adapter import (
    AdapterError,
    DefinitionTarget,
    InvalidEntryPointError,
    InvalidOutputShapeError,
    ModuleLoadError,
    NullSurface,
    OutputAdapter,
)
from stackcore.config import get_config
from stackcore.definitions import (
    get_manifest,
    load_manifests,
    verify_definition_checksum,
)
from stackcore.errors import map_exception

router = APIRouter()


def _error(status: int, error_type: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"error_type": error_type, "message": message},
    )


def _status_for(e: AdapterError) -> int:
    if isinstance(e, (InvalidEntryPointError, InvalidOutputShapeError)):
        return 422
    if e.error_type == "module-not-found":
        return 404
    return 500


def _jsonable(values: dict[str, Any]) -> dict[str, Any]:
    return json.loads(json.dumps(values, default=str))


@router.get("/definitions")
def list_definitions(request: Request):  # noqa: D401
    cfg = get_config()
    repo_root = request.app.state.repo_root
    try:
        manifests = load_manifests(repo_root, cfg.definitions.registry_dir)
    except ModuleLoadError as e:
        return _error(500, e.error_type, str(e))
    items = []
    for m in manifests.values():
        checksum_error = None
        try:
            verify_definition_checksum(m)
        except ModuleLoadError as e:
            checksum_error = e.error_type
        items.append(
            {
                "id": m.id,
                "module": m.module,
                "entry": m.entry,
                "compiler": m.compiler,
                "revision": m.revision,
                "checksum_pinned": bool(m.checksum_sha256),
                "checksum_error": checksum_error,
            }
        )
    return {"definitions": items}


@router.post("/definitions/{stack_id}/evaluate")
def evaluate_definition(stack_id: str, request: Request):  # noqa: D401
    cfg = get_config()
    repo_root = request.app.state.repo_root
    try:
        manifest = get_manifest(
            stack_id, repo_root, cfg.definitions.registry_dir
        )
        adapter = OutputAdapter(
            DefinitionTarget.from_manifest(manifest),
            require_serializable=cfg.adapter.require_serializable,
        )
        outputs = adapter.run(NullSurface())
    except AdapterError as e:
        return _error(_status_for(e), e.error_type, str(e))
    except Exception as e:  # noqa: BLE001 - entry raised; report, don't crash
        return _error(500, map_exception(e, "entry.invoke"), str(e))
    return {"id": manifest.id, "outputs": _jsonable(outputs.to_dict())}
