import json
import logging

import pytest

from stackcore import metrics
from stackcore.adapter import (
    InvalidEntryPointError,
    InvalidOutputShapeError,
    ModuleLoadError,
)
from stackcore.errors import map_exception, validate_error_type
from stackcore.events import (
    EventBus,
    OutputsPublished,
    emit,
    on,
    subscribe,
)
from stackcore.logs import JsonLineFormatter, configure_logging


def test_eventbus_basic_dispatch():
    got = []
    subscribe("OutputsPublished", lambda p: got.append(p["output_count"]))
    subscribe("OutputsPublished", lambda p: got.append(p["output_count"] * 2))
    emit(OutputsPublished(surface="dict", output_count=3))
    assert sorted(got) == [3, 6]
    assert metrics.counter_value(
        "events_emitted_total", {"event": "OutputsPublished"}
    ) == 1


def test_standalone_bus_counts_events():
    bus = EventBus()
    bus.emit("TestEvent", {"value": 3})
    assert metrics.counter_value(
        "events_emitted_total", {"event": "TestEvent"}
    ) == 1


def test_dataclass_event_payload_and_unsubscribe():
    got = []
    unsub = on(lambda name, p: got.append((name, p)))
    emit(OutputsPublished(surface="module", output_count=2))
    unsub()
    emit(OutputsPublished(surface="module", output_count=3))
    assert len(got) == 1
    name, payload = got[0]
    assert name == "OutputsPublished"
    assert payload["output_count"] == 2
    assert "ts" in payload


def test_handler_receives_copy():
    bus = EventBus()
    seen = []

    def mutate(p):
        p["x"] = "changed"

    bus.subscribe("E", mutate)
    bus.subscribe("E", lambda p: seen.append(p["x"]))
    bus.emit("E", {"x": "orig"})
    assert seen == ["orig"]


def test_metrics_snapshot_render():
    metrics.inc("a_total", {"k": "v"})
    metrics.inc("a_total", {"k": "v"}, 2)
    metrics.observe("lat_ms", 5)
    metrics.observe("lat_ms", 1)
    snap = metrics.snapshot()
    assert snap["counters"]["a_total{k=v}"] == 3
    assert snap["histograms"]["lat_ms"]["count"] == 2
    assert snap["histograms"]["lat_ms"]["min"] == 1


def test_histogram_keeps_recent_window():
    for i in range(metrics.HIST_MAX_SAMPLES + 10):
        metrics.observe("eval_ms", i)
    hist = metrics.snapshot()["histograms"]["eval_ms"]
    assert hist["count"] == metrics.HIST_MAX_SAMPLES
    assert hist["min"] == 10
    assert hist["last"] == metrics.HIST_MAX_SAMPLES + 9


def test_error_taxonomy_known_and_unknown():
    assert validate_error_type("entry-raised") == "entry-raised"
    with pytest.raises(AssertionError):
        validate_error_type("not-a-code")


def test_adapter_errors_carry_codes():
    assert ModuleLoadError("x").error_type == "module-import-failed"
    assert InvalidEntryPointError("x").error_type == "entry-point-missing"
    assert InvalidOutputShapeError("x").error_type == "output-not-mapping"
    with pytest.raises(AssertionError):
        ModuleLoadError("x", "bogus")


def test_map_exception_by_phase():
    assert map_exception(FileNotFoundError(), "definition.load") == (
        "module-not-found"
    )
    assert map_exception(SyntaxError(), "definition.load") == (
        "module-import-failed"
    )
    assert map_exception(ValueError(), "entry.invoke") == "entry-raised"
    assert map_exception(
        InvalidOutputShapeError("x", "output-key-invalid"), "entry.invoke"
    ) == "output-key-invalid"
    assert map_exception(RuntimeError(), "outputs.publish") == "export-failed"


def test_configure_logging_json_and_idempotent():
    class Cfg:
        level = "debug"
        format = "json"

    logger = configure_logging(Cfg())
    configure_logging(Cfg())
    ours = [h for h in logger.handlers if getattr(h, "_stackout", False)]
    assert len(ours) == 1
    assert logger.level == logging.DEBUG
    record = logging.LogRecord(
        "stackout.adapter", logging.INFO, __file__, 1, "[adapter-run] n=%d",
        (2,), None,
    )
    line = json.loads(JsonLineFormatter().format(record))
    assert line["msg"] == "[adapter-run] n=2"
    assert line["level"] == "info"
    configure_logging(None)
