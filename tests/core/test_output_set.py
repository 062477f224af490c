from collections import OrderedDict

import pytest

from stackcore.adapter import InvalidOutputShapeError, OutputSet


def test_output_set_preserves_order_and_is_read_only():
    outs = OutputSet(OrderedDict([("b", 1), ("a", 2)]))
    assert list(outs) == ["b", "a"]
    assert outs == {"b": 1, "a": 2}
    with pytest.raises(TypeError):
        outs["c"] = 3  # type: ignore[index]


def test_output_set_snapshot_is_detached_from_source():
    src = {"bucketName": "my-bucket"}
    outs = OutputSet(src)
    src["bucketName"] = "changed"
    src["extra"] = 1
    assert outs.to_dict() == {"bucketName": "my-bucket"}


@pytest.mark.parametrize("value", [None, 42, "text", ["a"], ("k", "v")])
def test_non_mapping_rejected(value):
    with pytest.raises(InvalidOutputShapeError) as ei:
        OutputSet.from_result(value)
    assert ei.value.error_type == "output-not-mapping"


@pytest.mark.parametrize("key", [1, "", None, ("a",)])
def test_non_string_or_empty_key_rejected(key):
    with pytest.raises(InvalidOutputShapeError) as ei:
        OutputSet({key: "v"})
    assert ei.value.error_type == "output-key-invalid"


def test_require_serializable():
    assert OutputSet({"n": [1, {"x": None}]}, require_serializable=True)
    with pytest.raises(InvalidOutputShapeError) as ei:
        OutputSet({"obj": object()}, require_serializable=True)
    assert ei.value.error_type == "output-value-unserializable"


def test_arbitrary_values_allowed_by_default():
    marker = object()
    assert OutputSet({"obj": marker})["obj"] is marker
