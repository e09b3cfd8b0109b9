"""
TrieStore Path Utilities
========================

Pure helpers for comparing, ordering and de-duplicating paths.

A path is an ordered sequence of string segments that addresses a node by
walking records and arrays from the root. The empty path addresses the root
itself and empty-string segments are valid keys.

None of the functions here mutate their arguments: sorting and de-duplication
always return new lists that reuse the original path objects.
"""

from typing import Callable, List, Sequence, Tuple, Union

from cachetools import LRUCache, cached

Path = Tuple[str, ...]
PathLike = Union[str, Sequence[str]]

ROOT_PATH: Path = ()


def is_path_prefix(path: Sequence[str], prefix: Sequence[str]) -> bool:
    """Return True if `prefix` is a prefix of `path` (or equal to it)."""
    if len(prefix) > len(path):
        return False
    for i in range(len(prefix)):
        if path[i] != prefix[i]:
            return False
    return True


def sort_paths(paths: Sequence[Sequence[str]]) -> List[Sequence[str]]:
    """
    Sort paths segment by segment, shorter prefixes first.

    The sort is stable: equal paths keep their relative order.
    """
    return sorted(paths, key=tuple)


def select_unique_paths(paths: Sequence[Sequence[str]]) -> List[Sequence[str]]:
    """
    Return sorted paths with exact duplicates removed.

    The first of every run of equal paths is kept as the representative.
    """
    result: List[Sequence[str]] = []
    for path in sort_paths(paths):
        if not result or tuple(result[-1]) != tuple(path):
            result.append(path)
    return result


def select_unique_path_prefixes(
    paths: Sequence[Sequence[str]],
) -> List[Sequence[str]]:
    """
    Keep only the most general paths of the set.

    Any path that has another path of the set as a prefix is dropped, so
    overlapping changes collapse onto their shortest common path. If the root
    path is present the result is exactly ``[root]``.
    """
    result: List[Sequence[str]] = []
    for path in sort_paths(paths):
        # Sorted order guarantees that a covering prefix is always the last kept path.
        if not result or not is_path_prefix(path, result[-1]):
            result.append(path)
    return result


def make_path_parser(
    separator: str = ".", cache_size: int = 1024
) -> Callable[[PathLike], Path]:
    """
    Create a path normaliser bound to a separator.

    The returned function accepts either a sequence of segments or a
    separator-joined string and returns a tuple of ``str`` segments. The
    empty string denotes the root path. String parsing is memoised in an
    LRU cache of `cache_size` entries.
    """
    if not separator:
        raise ValueError("Path separator must be a non-empty string")

    @cached(cache=LRUCache(maxsize=cache_size))
    def split(text: str) -> Path:
        return tuple(text.split(separator)) if text else ROOT_PATH

    def parse(path: PathLike) -> Path:
        if isinstance(path, str):
            return split(path)
        return tuple(str(segment) for segment in path)

    return parse


parse_path = make_path_parser()
