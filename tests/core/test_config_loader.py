import logging
from pathlib import Path

import pytest

from stackcore import metrics
from stackcore.config import (
    ConfigError,
    as_dict,
    build_config,
    clear_config_cache,
    get_config,
)


def _config_dir(tmp_path: Path, monkeypatch, base: str, local: str = ""):
    (tmp_path / "base.yaml").write_text(base, encoding="utf-8")
    if local:
        (tmp_path / "overrides.local.yaml").write_text(local, encoding="utf-8")
    monkeypatch.setenv("STACKOUT_CONFIG_DIR", str(tmp_path))
    clear_config_cache()


def test_repo_base_config_loads():
    cfg = get_config()
    assert cfg.adapter.definition == "generated/stack.py"
    assert cfg.adapter.entry == "stack"
    assert cfg.adapter.export == "module"
    assert cfg.definitions.registry_dir == "stacks"


def test_defaults_when_no_files(tmp_path, monkeypatch):
    monkeypatch.setenv("STACKOUT_CONFIG_DIR", str(tmp_path / "missing"))
    clear_config_cache()
    cfg = get_config()
    assert cfg.schema_version == 1
    assert cfg.adapter.stack is None
    assert cfg.logging.format == "text"


def test_overrides_local_wins(tmp_path, monkeypatch):
    _config_dir(
        tmp_path,
        monkeypatch,
        "adapter:\n  entry: stack\n  definition: a.py\n",
        "adapter:\n  entry: main\n",
    )
    cfg = get_config()
    assert cfg.adapter.entry == "main"
    assert cfg.adapter.definition == "a.py"


def test_env_override_metric_and_log(tmp_path, monkeypatch, caplog):
    _config_dir(tmp_path, monkeypatch, "adapter:\n  entry: stack\n")
    monkeypatch.setenv("STACKOUT__ADAPTER__REQUIRE_SERIALIZABLE", "true")
    monkeypatch.setenv("STACKOUT__ADAPTER__ENTRY", "main")
    with caplog.at_level(logging.INFO, logger="stackout.config"):
        cfg = as_dict()
    assert cfg["adapter"]["require_serializable"] is True
    assert cfg["adapter"]["entry"] == "main"
    assert metrics.counter_value(
        "env_override_total", {"path": "adapter.entry"}
    ) == 1
    assert "[config-env-override] path=adapter.entry" in caplog.text
    assert "main" not in caplog.text.replace("adapter", "")


def test_unknown_keys_rejected(tmp_path, monkeypatch):
    _config_dir(tmp_path, monkeypatch, "adapter:\n  unknown_field: 1\n")
    with pytest.raises(ConfigError):
        get_config()


def test_unknown_section_rejected():
    with pytest.raises(ConfigError):
        build_config({"llm": {}})


@pytest.mark.parametrize(
    "raw",
    [
        {"adapter": {"entry": "not-an-identifier"}},
        {"adapter": {"stack": "   "}},
        {"definitions": {"registry_dir": ""}},
        {"adapter": {"export": "s3"}},
        {"logging": {"level": "verbose"}},
    ],
)
def test_invalid_values_rejected(raw):
    with pytest.raises(ConfigError):
        build_config(raw)


def test_validation_error_metric():
    with pytest.raises(ConfigError):
        build_config({"adapter": {"entry": "1bad"}})
    assert metrics.counter_value(
        "config_validation_errors_total",
        {"path": "adapter.entry", "code": "config-invalid"},
    ) == 1


def test_invalid_yaml(tmp_path, monkeypatch):
    _config_dir(tmp_path, monkeypatch, "adapter: [unclosed\n")
    with pytest.raises(ConfigError):
        get_config()
