"""Configuration loading & validation.

Precedence (last wins): base.yaml → overrides.local.yaml → ENV (STACKOUT__*).

Unknown keys are rejected at every level.
"""
from __future__ import annotations

import logging
import os
import pathlib
import threading
from functools import lru_cache
from typing import Any, Dict, Type

import yaml
from pydantic import BaseModel, ConfigDict

from stackcore import metrics
from stackcore.errors import validate_error_type

from .schemas.adapter import AdapterConfig, DefinitionsConfig
from .schemas.observability import LoggingConfig, MetricsConfig

logger = logging.getLogger("stackout.config")


class AggregatedConfig(BaseModel):
    schema_version: int = 1
    adapter: AdapterConfig = AdapterConfig()
    definitions: DefinitionsConfig = DefinitionsConfig()
    logging: LoggingConfig = LoggingConfig()
    metrics: MetricsConfig = MetricsConfig()

    model_config = ConfigDict(extra="forbid")


DEFAULT_CONFIG_DIR = "configs"
CONFIG_DIR_ENV = "STACKOUT_CONFIG_DIR"
ENV_PREFIX = "STACKOUT__"

SUB_SCHEMA_CLASSES: Dict[str, Type[BaseModel]] = {
    "adapter": AdapterConfig,
    "definitions": DefinitionsConfig,
    "logging": LoggingConfig,
    "metrics": MetricsConfig,
}


class ConfigError(Exception):
    pass


def _load_yaml_if_exists(path: pathlib.Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path.name}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path.name}: top level must be a mapping")
    return data


def _merge_dict(
    base: Dict[str, Any], override: Dict[str, Any]
) -> Dict[str, Any]:
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            base[k] = _merge_dict(base[k], v)
        else:
            base[k] = v
    return base


def _cast_env_value(value: str) -> Any:
    if value.lower() in {"true", "false"}:
        return value.lower() == "true"
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return value


def _apply_env(cfg: Dict[str, Any]) -> None:
    prefix_len = len(ENV_PREFIX)
    for env_key, value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue
        path_parts = env_key[prefix_len:].lower().split("__")
        target = cfg
        for part in path_parts[:-1]:
            if part not in target or not isinstance(target[part], dict):
                target[part] = {}
            target = target[part]
        target[path_parts[-1]] = _cast_env_value(value)
        dotted_path = ".".join(path_parts)
        metrics.inc("env_override_total", {"path": dotted_path})
        logger.info(
            "[config-env-override] path=%s value=*** source=env", dotted_path
        )


_lock = threading.Lock()


def _resolve_config_dir() -> pathlib.Path:
    """Resolve config directory each call honoring env var changes."""
    return pathlib.Path(os.getenv(CONFIG_DIR_ENV, DEFAULT_CONFIG_DIR))


def _normalize_and_validate(raw: Dict[str, Any]) -> None:
    """Cross-field checks pydantic field types do not express.

    - adapter.entry must be a Python identifier
    - adapter.stack, when given, must be non-blank
    - definitions.registry_dir must be non-blank
    """
    errors: list[tuple[str, str, str]] = []  # (path, code, msg)
    adapter = raw.get("adapter")
    if isinstance(adapter, dict):
        entry = adapter.get("entry")
        if entry is not None and not (
            isinstance(entry, str) and entry.isidentifier()
        ):
            errors.append(
                ("adapter.entry", "config-invalid", "identifier required")
            )
        stack = adapter.get("stack")
        if isinstance(stack, str) and not stack.strip():
            errors.append(
                ("adapter.stack", "config-invalid", "blank stack id")
            )
    definitions = raw.get("definitions")
    if isinstance(definitions, dict):
        reg = definitions.get("registry_dir")
        if isinstance(reg, str) and not reg.strip():
            errors.append(
                (
                    "definitions.registry_dir",
                    "config-invalid",
                    "blank registry dir",
                )
            )

    if errors:
        for path, code, _ in errors:
            validate_error_type(code)
            metrics.inc(
                "config_validation_errors_total",
                {"path": path, "code": code},
            )
        details = ", ".join(f"{p}:{c}:{m}" for p, c, m in errors)
        raise ConfigError(f"config validation failed: {details}")


def _validate_sub_schemas(raw: Dict[str, Any]) -> Dict[str, BaseModel]:
    validated: Dict[str, BaseModel] = {}
    for name, cls in SUB_SCHEMA_CLASSES.items():
        if name in raw:
            try:
                validated[name] = cls.model_validate(raw[name] or {})
            except Exception as e:  # noqa: BLE001
                raise ConfigError(
                    f"Validation failed for section '{name}': {e}"
                ) from e
    return validated


def build_config(raw: Dict[str, Any]) -> AggregatedConfig:
    """Validate an already merged raw mapping (no files, no env)."""
    raw.setdefault("schema_version", 1)
    _normalize_and_validate(raw)
    validated_sub = _validate_sub_schemas(raw)
    try:
        return AggregatedConfig.model_validate({**raw, **validated_sub})
    except Exception as e:  # noqa: BLE001
        raise ConfigError(str(e)) from e


@lru_cache(maxsize=1)
def get_config() -> AggregatedConfig:  # noqa: D401
    with _lock:
        cfg_dir = _resolve_config_dir()
        base_cfg = _load_yaml_if_exists(cfg_dir / "base.yaml")
        overrides_cfg = _load_yaml_if_exists(cfg_dir / "overrides.local.yaml")
        merged = _merge_dict(base_cfg, overrides_cfg)
        _apply_env(merged)
        return build_config(merged)


def clear_config_cache() -> None:
    """Clear cached config (primarily for tests)."""
    get_config.cache_clear()


def as_dict() -> Dict[str, Any]:
    return get_config().model_dump()
