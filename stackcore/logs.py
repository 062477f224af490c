"""Logging setup for the ``stackout`` logger hierarchy."""
from __future__ import annotations

import json
import logging
from typing import Any

ROOT_LOGGER = "stackout"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record (level, logger, msg, ts)."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "ts": record.created,
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(cfg: Any = None) -> logging.Logger:
    """Attach a stream handler to the ``stackout`` logger once.

    ``cfg`` is a LoggingConfig (or None for info/text). Re-running only
    updates level and formatter of the handler installed here.
    """
    level = _LEVELS.get(getattr(cfg, "level", "info"), logging.INFO)
    fmt = getattr(cfg, "format", "text")
    logger = logging.getLogger(ROOT_LOGGER)
    handler = next(
        (h for h in logger.handlers if getattr(h, "_stackout", False)), None
    )
    if handler is None:
        handler = logging.StreamHandler()
        handler._stackout = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    if fmt == "json":
        handler.setFormatter(JsonLineFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(levelname)s %(name)s %(message)s")
        )
    logger.setLevel(level)
    return logger


__all__ = ["configure_logging", "JsonLineFormatter", "ROOT_LOGGER"]
