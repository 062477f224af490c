"""OutputSet: immutable snapshot of one entry evaluation."""
from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Dict, Iterator

from .exceptions import InvalidOutputShapeError


class OutputSet(Mapping):
    """Ordered, read-only ``str -> value`` mapping.

    Construction validates the whole mapping up front, so a shape error
    never leaves a partially built set behind.
    """

    __slots__ = ("_data",)

    def __init__(
        self,
        values: Mapping[Any, Any] | None = None,
        *,
        require_serializable: bool = False,
    ) -> None:
        if values is None:
            values = {}
        if not isinstance(values, Mapping):
            raise InvalidOutputShapeError(
                "entry must return a mapping, got "
                f"{type(values).__name__}",
                "output-not-mapping",
            )
        data: Dict[str, Any] = {}
        for key, value in values.items():
            if not isinstance(key, str) or not key:
                raise InvalidOutputShapeError(
                    f"output names must be non-empty str, got {key!r}",
                    "output-key-invalid",
                )
            if require_serializable:
                _check_serializable(key, value)
            data[key] = value
        self._data = data

    @classmethod
    def from_result(
        cls, result: Any, *, require_serializable: bool = False
    ) -> "OutputSet":
        if isinstance(result, OutputSet) and not require_serializable:
            return result
        return cls(result, require_serializable=require_serializable)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"OutputSet({self._data!r})"

    def names(self) -> list[str]:
        return list(self._data)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._data)


def _check_serializable(key: str, value: Any) -> None:
    try:
        json.dumps(value)
    except (TypeError, ValueError) as e:
        raise InvalidOutputShapeError(
            f"output '{key}' is not JSON-serializable: {e}",
            "output-value-unserializable",
        ) from e


__all__ = ["OutputSet"]
