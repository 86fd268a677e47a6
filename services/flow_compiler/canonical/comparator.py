"""
Structural ordering for canonical graph values.

Values are ordered by their stable JSON serialization: keys sorted, no
whitespace, so structurally equal values always serialize identically.
"""

import json
from typing import Any


def _to_plain(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_to_plain(item) for item in value]
    if isinstance(value, dict):
        return {key: _to_plain(item) for key, item in value.items()}
    return value


def stable_stringify(value: Any) -> str:
    """Serialize a model object or JSON value deterministically"""
    return json.dumps(_to_plain(value), sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def sort_key(value: Any) -> str:
    """Key function for sorting canonical values"""
    return stable_stringify(value)


def compare(left: Any, right: Any) -> int:
    """Three-way comparison of two values by their serialization"""
    left_key = stable_stringify(left)
    right_key = stable_stringify(right)
    if left_key < right_key:
        return -1
    if left_key > right_key:
        return 1
    return 0
