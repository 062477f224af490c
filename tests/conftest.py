"""Pytest configuration ensuring project root and src/ are importable.

Also isolates process-wide state between tests: config cache, config env
vars, manifest cache, metrics and event listeners.
"""
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
SRC = ROOT / "src"
if SRC.exists() and str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture(autouse=True)
def _isolate_global_state(monkeypatch):  # noqa: D401
    from stackcore import metrics
    from stackcore.config import clear_config_cache
    from stackcore.definitions import clear_manifest_cache
    from stackcore.events import reset_listeners_for_tests

    for key in list(os.environ):
        if key.startswith("STACKOUT__"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("STACKOUT_CONFIG_DIR", str(ROOT / "configs"))
    clear_config_cache()
    clear_manifest_cache()
    metrics.reset_for_tests()
    reset_listeners_for_tests()
    try:
        yield
    finally:
        clear_config_cache()
        clear_manifest_cache()
        reset_listeners_for_tests()
        # handlers bind the (captured) stderr of the test that created them
        root_logger = logging.getLogger("stackout")
        for h in list(root_logger.handlers):
            if getattr(h, "_stackout", False):
                root_logger.removeHandler(h)


@pytest.fixture
def write_definition(tmp_path: Path):
    """Write a definition module file under tmp_path and return its path."""

    def _write(source: str, name: str = "generated/stack.py") -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source, encoding="utf-8")
        return path

    return _write
