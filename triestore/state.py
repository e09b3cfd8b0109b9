"""
TrieStore State Values
======================

The state tree is made of plain Python values:

- **record**: a ``dict`` with string keys, traversed by key
- **array**: a ``list``, traversed by non-negative decimal index strings
- **scalar**: anything else (``None``, numbers, strings, tuples, callables,
  arbitrary objects); never traversed

`ValueKind` is the closed classification used at every traversal step, and
`MISSING` marks the absence of a value (``None`` is a real value, the JSON
``null``).
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

MAX_ARRAY_LENGTH = 2**32 - 1


class _MISSING:
    """Sentinel for 'no value stored at this path'."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "MISSING"

    def __bool__(self):
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __reduce__(self):
        return (_MISSING, ())


MISSING = _MISSING()

StateRecord = Dict[str, Any]
StateArray = List[Any]
StateValue = Any


class ValueKind(Enum):
    """Tagged classification of a state value."""

    MISSING = "missing"
    NULL = "null"
    RECORD = "record"
    ARRAY = "array"
    SCALAR = "scalar"

    @property
    def is_container(self) -> bool:
        return self in (ValueKind.RECORD, ValueKind.ARRAY)


def classify(value: StateValue) -> ValueKind:
    """Return the `ValueKind` of a state value."""
    if value is MISSING:
        return ValueKind.MISSING
    if value is None:
        return ValueKind.NULL
    if isinstance(value, dict):
        return ValueKind.RECORD
    if isinstance(value, list):
        return ValueKind.ARRAY
    return ValueKind.SCALAR


def type_label(value: StateValue) -> str:
    """Human readable type name used in error messages."""
    kind = classify(value)
    if kind is ValueKind.NULL:
        return "<null>"
    if kind is ValueKind.MISSING:
        return "<missing>"
    return type(value).__name__


def is_record(value: StateValue) -> bool:
    return isinstance(value, dict)


def parse_array_index(key: str) -> Optional[int]:
    """
    Parse an array index segment.

    Only plain ASCII decimal strings are indexes: ``"0"`` and ``"12"`` are,
    ``"-1"``, ``"1.0"``, ``"+1"`` and ``""`` are not. Returns None for invalid
    keys and for indexes at or above `MAX_ARRAY_LENGTH`.
    """
    if not key or not key.isascii() or not key.isdigit():
        return None
    index = int(key)
    if index >= MAX_ARRAY_LENGTH:
        return None
    return index


def child_of(value: StateValue, key: str) -> StateValue:
    """Return the child of `value` under `key`, or `MISSING`."""
    kind = classify(value)
    if kind is ValueKind.RECORD:
        return value.get(key, MISSING)
    if kind is ValueKind.ARRAY:
        index = parse_array_index(key)
        if index is None or index >= len(value):
            return MISSING
        return value[index]
    return MISSING


def get_in_path(state: StateValue, path: Sequence[str]) -> StateValue:
    """Return the value stored at `path` under `state`, or `MISSING`."""
    result = state
    for key in path:
        result = child_of(result, key)
        if result is MISSING:
            break
    return result


StateContainer = Union[StateRecord, StateArray]
