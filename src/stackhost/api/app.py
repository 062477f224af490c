"""FastAPI application factory for the stackhost read-only API.

Endpoints: /health, /config, /metrics, /definitions,
/definitions/{id}/evaluate.
"""
from __future__ import annotations

import os

from fastapi import FastAPI

from stackcore import metrics
from stackcore.config import get_config
from stackhost.api.routes.definitions import router as definitions_router

REPO_ROOT_ENV = "STACKOUT_REPO_ROOT"


def create_app(repo_root: str | None = None) -> FastAPI:
    app = FastAPI(
        title="stackhost API",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
    )
    app.state.repo_root = repo_root or os.getenv(REPO_ROOT_ENV, ".")

    @app.get("/health")
    def health():  # noqa: D401
        return {"status": "ok"}

    @app.get("/config")
    def config():  # noqa: D401
        cfg = get_config()
        return {
            "schema_version": cfg.schema_version,
            "adapter": cfg.adapter.model_dump(),
            "definitions": cfg.definitions.model_dump(),
            "repo_root": app.state.repo_root,
        }

    @app.get("/metrics")
    def metrics_snapshot():  # noqa: D401
        if not get_config().metrics.enabled:
            return {"enabled": False}
        return {"enabled": True, **metrics.snapshot()}

    app.include_router(definitions_router)
    return app


app = create_app()


def main() -> None:  # pragma: no cover
    import uvicorn

    uvicorn.run("stackhost.api.app:app", host="127.0.0.1", port=8000)


if __name__ == "__main__":  # pragma: no cover
    main()
