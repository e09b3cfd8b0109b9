"""
TrieStore Utils
===============

Path helpers and the generic path-segment trie used by the store.
"""

from .paths import (
    ROOT_PATH,
    Path,
    PathLike,
    is_path_prefix,
    make_path_parser,
    parse_path,
    select_unique_path_prefixes,
    select_unique_paths,
    sort_paths,
)
from .trie import Trie

__all__ = [
    "Path",
    "PathLike",
    "ROOT_PATH",
    "is_path_prefix",
    "sort_paths",
    "select_unique_paths",
    "select_unique_path_prefixes",
    "make_path_parser",
    "parse_path",
    "Trie",
]
