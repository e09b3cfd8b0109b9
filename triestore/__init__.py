"""
TrieStore - Observable Path Trie Store
======================================

A nested state container whose nodes can be observed by path. Updates are
copy-on-write, so every version of the state shares untouched subtrees with the
previous one, and observers of a node are notified whenever the node or any of
its descendants changes.
"""

__version__ = "1.1.2"

from .errors import (
    ArrayElementDeleteUnsupported,
    EmptyPath,
    InvalidArrayIndex,
    InvalidRootType,
    NonRecordParent,
    TrieStoreError,
)
from .mutator import (
    Action,
    BatchAction,
    DeleteAction,
    SetAction,
    apply,
    deep_clone_on_path,
    delete_in_path,
    extract_paths,
    set_in_path,
)
from .state import MISSING, ValueKind, classify, get_in_path
from .store import (
    ChangeChannel,
    DetailLevel,
    StateChange,
    Subscription,
    TrieStore,
    create_store,
)
from .util.paths import (
    is_path_prefix,
    parse_path,
    select_unique_path_prefixes,
    select_unique_paths,
    sort_paths,
)
from .util.trie import Trie

__all__ = [
    # Store
    "TrieStore",
    "create_store",
    "Subscription",
    "ChangeChannel",
    "DetailLevel",
    "StateChange",
    # Actions and copy-on-write updates
    "Action",
    "SetAction",
    "DeleteAction",
    "BatchAction",
    "apply",
    "set_in_path",
    "delete_in_path",
    "deep_clone_on_path",
    "extract_paths",
    # State values
    "MISSING",
    "ValueKind",
    "classify",
    "get_in_path",
    # Paths
    "is_path_prefix",
    "sort_paths",
    "select_unique_paths",
    "select_unique_path_prefixes",
    "parse_path",
    "Trie",
    # Exceptions
    "TrieStoreError",
    "InvalidRootType",
    "InvalidArrayIndex",
    "NonRecordParent",
    "EmptyPath",
    "ArrayElementDeleteUnsupported",
]
