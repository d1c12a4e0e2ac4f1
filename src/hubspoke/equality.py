"""Semantic deep equality and structural diffs for resource values."""
import difflib
import json
from collections.abc import Mapping
from datetime import datetime
from typing import Any, List

from pydantic import BaseModel
from pydantic_core import to_jsonable_python


def _is_empty_container(value: Any) -> bool:
    return isinstance(value, (Mapping, list, tuple, set, frozenset)) and len(value) == 0


def semantic_deep_equal(a: Any, b: Any) -> bool:
    """Compare two values the way API machinery compares objects.

    Rules:
    - models are equal when they share a concrete type and every field is
      semantically equal;
    - ``None`` equals an empty list or mapping (an unset slice/map and an
      empty one are the same state), but never an empty string or zero;
    - timestamps compare as instants;
    - ``bool`` never equals an ``int``;
    - everything else compares with ``==``.
    """
    if isinstance(a, BaseModel) or isinstance(b, BaseModel):
        if type(a) is not type(b):
            return False
        return all(
            semantic_deep_equal(getattr(a, name), getattr(b, name))
            for name in type(a).model_fields
        )

    if a is None or b is None:
        other = b if a is None else a
        return other is None or _is_empty_container(other)

    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if a.keys() != b.keys():
            return False
        return all(semantic_deep_equal(a[k], b[k]) for k in a)

    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        if len(a) != len(b):
            return False
        return all(semantic_deep_equal(x, y) for x, y in zip(a, b))

    if isinstance(a, datetime) and isinstance(b, datetime):
        if (a.tzinfo is None) != (b.tzinfo is None):
            return False
        return a == b

    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b

    return bool(a == b)


def _render(value: Any) -> List[str]:
    if isinstance(value, BaseModel):
        plain = value.model_dump(mode="json", by_alias=True)
    else:
        plain = to_jsonable_python(value, fallback=repr)
    text = json.dumps(plain, indent=2, sort_keys=True, ensure_ascii=False)
    return [f"{type(value).__name__}\n"] + [line + "\n" for line in text.splitlines()]


def object_diff(expected: Any, actual: Any) -> str:
    """Return a unified diff of two values (``-`` expected, ``+`` actual)."""
    return "".join(
        difflib.unified_diff(
            _render(expected),
            _render(actual),
            fromfile="expected",
            tofile="actual",
        )
    )
