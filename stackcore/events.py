"""Adapter events + in-process event bus.

Two subscription styles:
  - ``subscribe(event_name, handler)``: per-event handlers receiving payload
  - ``on(handler)``: any-event handlers receiving ``(name, payload)``

Handlers are isolated: exceptions are counted
(handler_exceptions_total{event}) and logged, never propagated to the
adapter.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from threading import RLock
from time import time
from typing import Any, Callable, Dict, List

from stackcore import metrics

Handler = Callable[[Dict[str, Any]], None]
AnyHandler = Callable[[str, Dict[str, Any]], None]

logger = logging.getLogger("stackout.events")


@dataclass(slots=True)
class BaseEvent:
    def to_event(self) -> Dict[str, Any]:  # noqa: D401
        data = asdict(self)
        data["ts"] = data.get("ts") or time()
        return data


@dataclass(slots=True)
class DefinitionLoaded(BaseEvent):
    definition: str
    module_name: str
    load_ms: int
    stack_id: str | None = None


@dataclass(slots=True)
class DefinitionLoadFailed(BaseEvent):
    definition: str
    error_type: str
    message: str | None = None
    stack_id: str | None = None


@dataclass(slots=True)
class OutputsEvaluated(BaseEvent):
    definition: str
    entry: str
    output_count: int
    eval_ms: int
    output_names: list[str] | None = None


@dataclass(slots=True)
class OutputsPublished(BaseEvent):
    surface: str
    output_count: int
    overwritten: list[str] | None = None


@dataclass(slots=True)
class AdapterFailed(BaseEvent):
    """Terminal failure of one adapter run (error re-raised to caller)."""
    definition: str
    phase: str
    error_type: str
    message: str | None = None


class EventBus:
    def __init__(self) -> None:
        self._subs: Dict[str, List[Handler]] = {}
        self._any: List[AnyHandler] = []
        self._lock = RLock()

    def subscribe(self, event: str, handler: Handler) -> Callable[[], None]:
        with self._lock:
            self._subs.setdefault(event, []).append(handler)

        def _unsub() -> None:
            with self._lock:
                try:
                    self._subs.get(event, []).remove(handler)
                except ValueError:
                    pass
        return _unsub

    def on(self, handler: AnyHandler) -> Callable[[], None]:
        with self._lock:
            self._any.append(handler)

        def _unsub() -> None:
            with self._lock:
                try:
                    self._any.remove(handler)
                except ValueError:
                    pass
        return _unsub

    def emit(self, event: str, payload: Dict[str, Any]) -> None:
        t0 = time()
        if "ts" not in payload:
            payload["ts"] = t0
        with self._lock:
            subs = list(self._subs.get(event, ()))
            any_subs = list(self._any)
        metrics.inc("events_emitted_total", {"event": event})
        for h in subs:
            try:
                h(dict(payload))
            except Exception:  # noqa: BLE001
                self._handler_failed(event)
        for ah in any_subs:
            try:
                ah(event, dict(payload))
            except Exception:  # noqa: BLE001
                self._handler_failed(event)

    @staticmethod
    def _handler_failed(event: str) -> None:
        metrics.inc("handler_exceptions_total", {"event": event})
        logger.warning(
            "[event-handler-error] event=%s", event, exc_info=True
        )

    def reset_for_tests(self) -> None:  # pragma: no cover
        with self._lock:
            self._subs.clear()
            self._any.clear()


_BUS = EventBus()


def subscribe(event: str, handler: Handler) -> Callable[[], None]:
    return _BUS.subscribe(event, handler)


def on(handler: AnyHandler) -> Callable[[], None]:
    return _BUS.on(handler)


def emit(ev: BaseEvent) -> None:
    _BUS.emit(ev.__class__.__name__, ev.to_event())


def reset_listeners_for_tests() -> None:  # pragma: no cover
    _BUS.reset_for_tests()


__all__ = [
    "EventBus",
    "emit",
    "on",
    "subscribe",
    "DefinitionLoaded",
    "DefinitionLoadFailed",
    "OutputsEvaluated",
    "OutputsPublished",
    "AdapterFailed",
    "reset_listeners_for_tests",
]
