"""TrieStore exceptions."""

from typing import Any, Sequence, Tuple


class TrieStoreError(Exception):
    """Base exception for TrieStore errors."""

    pass


def _format_path(path: Sequence[str]) -> str:
    return "[" + ", ".join(repr(segment) for segment in path) + "]"


class InvalidRootType(TrieStoreError, ValueError):
    """Raised when the root state is replaced with a value that is not a record."""

    def __init__(self, value: Any, type_label: str):
        self.value = value
        self.type_label = type_label
        super().__init__(
            f"Root state must be a record. Trying to set {value!r}, type: {type_label}"
        )


class InvalidArrayIndex(TrieStoreError, ValueError):
    """Raised when an array is traversed or written with a key that is not a valid index."""

    def __init__(self, path: Sequence[str], index: str):
        self.path: Tuple[str, ...] = tuple(path)
        self.index = index
        super().__init__(
            f"Invalid array index. Path: {_format_path(path)}, index: {index!r}"
        )


class NonRecordParent(TrieStoreError, TypeError):
    """Raised when a write or delete has to pass through a scalar value."""

    def __init__(self, path: Sequence[str], type_label: str, operation: str = "set"):
        self.path: Tuple[str, ...] = tuple(path)
        self.type_label = type_label
        self.operation = operation
        verb = "set a property to" if operation == "set" else "delete a property from"
        super().__init__(
            f"Cannot {verb} a non-record parent. "
            f"Path: {_format_path(path)}, type: {type_label}"
        )


class EmptyPath(TrieStoreError, ValueError):
    """Raised when a delete targets the root path."""

    def __init__(self):
        super().__init__("Can't delete an empty path")


class ArrayElementDeleteUnsupported(TrieStoreError, TypeError):
    """Raised when a delete targets an element of an array."""

    def __init__(self, path: Sequence[str]):
        self.path: Tuple[str, ...] = tuple(path)
        super().__init__(f"Can't delete element of array. Path: {_format_path(path)}")
