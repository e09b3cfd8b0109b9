"""
TrieStore Mutator - Copy-on-Write Tree Updates
==============================================

Pure functions that apply actions to a state tree without ever modifying it.

Every successful change returns a new root that shares all untouched
substructure with the original tree: only the records and arrays on the path
from the root to the changed node are copied. An action that changes nothing
returns the original root object, so identity comparison of roots is a valid
change detector.

Actions:
- `SetAction(path, value)`: stores `value` at `path` (``MISSING`` deletes)
- `DeleteAction(path)`: removes the key at `path`
- `BatchAction(actions)`: applies nested actions in order

Example:
    state = {"a": {"b": 1}, "c": {"d": 2}}
    new_state = apply(state, SetAction(("a", "b"), 10))
    new_state["c"] is state["c"]   # True, untouched subtree is shared
    apply(new_state, SetAction(("a", "b"), 10)) is new_state   # True, no-op
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

from .errors import (
    ArrayElementDeleteUnsupported,
    EmptyPath,
    InvalidArrayIndex,
    InvalidRootType,
    NonRecordParent,
)
from .state import (
    MISSING,
    StateContainer,
    StateRecord,
    StateValue,
    ValueKind,
    child_of,
    classify,
    parse_array_index,
    type_label,
)
from .util.paths import Path, select_unique_paths

# ============================================================================
# ACTIONS
# ============================================================================


@dataclass(frozen=True)
class SetAction:
    """Store `value` at `path`."""

    path: Path
    value: StateValue


@dataclass(frozen=True)
class DeleteAction:
    """Remove the value stored at `path`."""

    path: Path


@dataclass(frozen=True)
class BatchAction:
    """Apply `actions` in order as a single change."""

    actions: Tuple["Action", ...]


Action = Union[SetAction, DeleteAction, BatchAction]


def apply(state: StateRecord, action: Action) -> StateRecord:
    """Apply `action` to `state` and return the resulting root."""
    if isinstance(action, SetAction):
        return set_in_path(state, action.path, action.value)
    if isinstance(action, DeleteAction):
        return delete_in_path(state, action.path)
    if isinstance(action, BatchAction):
        result = state
        for batch_action in action.actions:
            result = apply(result, batch_action)
        return result
    raise TypeError(f"Unsupported action: {action!r}")


def extract_paths(action: Action, unique: bool = False) -> List[Path]:
    """
    Collect the paths of every set/delete in `action`, flattening batches.

    With ``unique=True`` the result is sorted and exact duplicates are removed,
    otherwise paths are returned in application order.
    """
    result: List[Path] = []
    _collect_paths(action, result)
    return select_unique_paths(result) if unique else result


def _collect_paths(action: Action, result: List[Path]) -> None:
    if isinstance(action, BatchAction):
        for batch_action in action.actions:
            _collect_paths(batch_action, result)
    else:
        result.append(action.path)


# ============================================================================
# SET / DELETE
# ============================================================================


def set_in_path(
    state: StateRecord, path: Sequence[str], new_value: StateValue
) -> StateRecord:
    """
    Set `new_value` at `path` and return the new root.

    The root path may be re-set, but only to a record. Setting ``MISSING`` is
    the same as `delete_in_path`. Returns `state` itself if the value at the
    path is already `new_value`. Writing past the end of an array extends it,
    filling the gap with ``MISSING``.
    """
    if new_value is MISSING:
        return delete_in_path(state, path)
    path = tuple(path)
    if not path:
        if classify(new_value) is not ValueKind.RECORD:
            raise InvalidRootType(new_value, type_label(new_value))
        return new_value

    sub_state: StateValue = state
    for i in range(len(path) - 1):
        key = path[i]
        if classify(sub_state) is ValueKind.ARRAY and parse_array_index(key) is None:
            raise InvalidArrayIndex(path[: i + 1], key)
        sub_state = child_of(sub_state, key)
        if sub_state is MISSING:
            # The rest of the branch is built from scratch.
            break
        if not classify(sub_state).is_container:
            raise NonRecordParent(path[: i + 1], type_label(sub_state))
    else:
        leaf_key = path[-1]
        if classify(sub_state) is ValueKind.ARRAY and parse_array_index(leaf_key) is None:
            raise InvalidArrayIndex(path, leaf_key)
        if child_of(sub_state, leaf_key) is new_value:
            return state
    return deep_clone_on_path(state, path, new_value)


def delete_in_path(state: StateRecord, path: Sequence[str]) -> StateRecord:
    """
    Delete the value at `path` and return the new root.

    Returns `state` itself if there is nothing to delete. Array elements can
    be replaced with `set_in_path` but never deleted.
    """
    path = tuple(path)
    if not path:
        raise EmptyPath()
    sub_state: StateValue = state
    for i in range(len(path) - 1):
        sub_state = child_of(sub_state, path[i])
        if sub_state is MISSING:
            return state
        if not classify(sub_state).is_container:
            raise NonRecordParent(path[: i + 1], type_label(sub_state), "delete")
    if child_of(sub_state, path[-1]) is MISSING:
        return state
    if classify(sub_state) is ValueKind.ARRAY:
        raise ArrayElementDeleteUnsupported(path)
    return deep_clone_on_path(state, path, MISSING)


def deep_clone_on_path(
    original_state: StateRecord, path: Sequence[str], patch_value: StateValue
) -> StateRecord:
    """
    Clone the records and arrays along `path` and patch the leaf.

    A ``MISSING`` patch removes the leaf key. Missing intermediate nodes are
    created as empty records when setting and left alone when deleting. Every
    node off the path is shared with `original_state`. The result is always a
    new root object.
    """
    path = tuple(path)
    if not path:
        if patch_value is MISSING:
            raise EmptyPath()
        if classify(patch_value) is not ValueKind.RECORD:
            raise InvalidRootType(patch_value, type_label(patch_value))
        return patch_value

    result = dict(original_state)
    cloned_state: StateContainer = result
    operation = "delete" if patch_value is MISSING else "set"
    for i in range(len(path) - 1):
        key = path[i]
        shared_sub_state = child_of(cloned_state, key)
        kind = classify(shared_sub_state)
        if kind is ValueKind.MISSING:
            if patch_value is MISSING:
                return result
            cloned_sub_state: StateContainer = {}
        elif kind is ValueKind.RECORD:
            cloned_sub_state = dict(shared_sub_state)
        elif kind is ValueKind.ARRAY:
            cloned_sub_state = list(shared_sub_state)
        else:
            raise NonRecordParent(path[: i + 1], type_label(shared_sub_state), operation)
        _assign(cloned_state, key, cloned_sub_state, path[: i + 1])
        cloned_state = cloned_sub_state

    leaf_key = path[-1]
    if patch_value is MISSING:
        if isinstance(cloned_state, list):
            raise ArrayElementDeleteUnsupported(path)
        cloned_state.pop(leaf_key, None)
    else:
        _assign(cloned_state, leaf_key, patch_value, path)
    return result


def _assign(container: StateContainer, key: str, value: StateValue, path: Path) -> None:
    if isinstance(container, dict):
        container[key] = value
        return
    index = parse_array_index(key)
    if index is None:
        raise InvalidArrayIndex(path, key)
    if index < len(container):
        container[index] = value
    else:
        container.extend([MISSING] * (index - len(container)))
        container.append(value)
