"""In-memory metrics store for adapter runs.

Core API:
    inc(name, labels=None, value=1)
    observe(name, value, labels=None)
    snapshot() -> dict (copy for safe reading)

Metric names recorded by the adapter:
    - definition_loads_total{status}
    - adapter_runs_total{status}
    - adapter_failures_total{error_type}
    - outputs_published_total{surface}
    - entry_eval_ms (histogram)
    - env_override_total{path}
    - handler_exceptions_total{event}
"""
from __future__ import annotations

from collections import deque
from threading import RLock
from time import time
from typing import Any, Dict, Tuple

_LabelKey = Tuple[Tuple[str, str], ...]

_COUNTERS: Dict[Tuple[str, _LabelKey], float] = {}
# histograms keep a bounded window of the most recent samples
HIST_MAX_SAMPLES = 1024
_HIST: Dict[Tuple[str, _LabelKey], deque] = {}
_LOCK = RLock()


def _norm_labels(labels: dict[str, Any] | None) -> _LabelKey:
    if not labels:
        return tuple()
    return tuple(sorted((str(k), str(v)) for k, v in labels.items()))


def _render(name: str, labels: _LabelKey) -> str:
    if not labels:
        return name
    return name + "{" + ",".join(f"{k}={v}" for k, v in labels) + "}"


def inc(
    name: str,
    labels: dict[str, Any] | None = None,
    value: float = 1.0,
) -> None:
    key = (name, _norm_labels(labels))
    with _LOCK:
        _COUNTERS[key] = _COUNTERS.get(key, 0.0) + value


def observe(
    name: str,
    value: float,
    labels: dict[str, Any] | None = None,
) -> None:
    key = (name, _norm_labels(labels))
    with _LOCK:
        _HIST.setdefault(key, deque(maxlen=HIST_MAX_SAMPLES)).append(value)


def snapshot() -> dict[str, Any]:
    with _LOCK:
        counters = {
            _render(name, labels): v
            for (name, labels), v in _COUNTERS.items()
        }
        hist = {}
        for (name, labels), vals in _HIST.items():
            if not vals:
                continue
            ordered = sorted(vals)
            hist[_render(name, labels)] = {
                "count": len(vals),
                "min": ordered[0],
                "max": ordered[-1],
                "p50": ordered[len(ordered) // 2],
                "last": vals[-1],
            }
        return {"ts": time(), "counters": counters, "histograms": hist}


def counter_value(name: str, labels: dict[str, Any] | None = None) -> float:
    """Return a single counter (0 when never incremented)."""
    with _LOCK:
        return _COUNTERS.get((name, _norm_labels(labels)), 0.0)


def reset_for_tests() -> None:  # pragma: no cover
    with _LOCK:
        _COUNTERS.clear()
        _HIST.clear()


# ------------------- Adapter helpers -------------------

def inc_definition_load(status: str) -> None:
    """status: ok|error"""
    inc("definition_loads_total", {"status": status})


def inc_adapter_run(status: str, error_type: str | None = None) -> None:
    inc("adapter_runs_total", {"status": status})
    if error_type:
        inc("adapter_failures_total", {"error_type": error_type})


def inc_outputs_published(surface: str, count: int) -> None:
    if count:
        inc("outputs_published_total", {"surface": surface}, value=count)


__all__ = [
    "inc",
    "observe",
    "snapshot",
    "counter_value",
    "reset_for_tests",
    "inc_definition_load",
    "inc_adapter_run",
    "inc_outputs_published",
]
