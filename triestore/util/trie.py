"""
TrieStore Trie - Path-Segment Indexed Container
===============================================

A small generic trie keyed by path segments. Every node may optionally hold a
value; intermediate nodes exist only as long as some descendant holds a value.

The store uses two independent instances of this container: one to index
change channels by path and one as a scratch structure marking every node that
has to be visited during a notification round.

Usage:
    trie = Trie[int]()
    trie.set(("a", "b"), 1)
    trie.get(("a", "b"))                      # 1
    trie.has_descendants(("a",))              # True
    list(trie.iter_dfs())                     # [(("a", "b"), 1)]
"""

from typing import Callable, Dict, Generic, Iterator, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")


class _StopFill:
    """Token returned by a `fill_path` callback to stop filling."""

    def __repr__(self):
        return "STOP_FILL"


class _TrieNode(Generic[T]):
    __slots__ = ("value", "has_value", "children")

    def __init__(self):
        self.value: Optional[T] = None
        self.has_value = False
        self.children: Dict[str, "_TrieNode[T]"] = {}

    @property
    def is_empty(self) -> bool:
        return not self.has_value and not self.children


class Trie(Generic[T]):
    """
    Generic trie mapping paths (sequences of string segments) to values.

    Features:
    - Point get / set / delete by path
    - Lazy creation with `get_or_set`
    - `fill_path` to populate every node from the root down to a path
    - Pre-order depth-first traversal from an arbitrary start path
    - Automatic pruning of branches that no longer hold any value
    """

    STOP_FILL = _StopFill()

    def __init__(self):
        self._root: _TrieNode[T] = _TrieNode()

    @property
    def is_empty(self) -> bool:
        """True if no node of the trie holds a value."""
        return self._root.is_empty

    def _find(self, path: Sequence[str]) -> Optional[_TrieNode[T]]:
        node = self._root
        for segment in path:
            node = node.children.get(segment)
            if node is None:
                return None
        return node

    def _ensure(self, path: Sequence[str]) -> _TrieNode[T]:
        node = self._root
        for segment in path:
            child = node.children.get(segment)
            if child is None:
                child = _TrieNode()
                node.children[segment] = child
            node = child
        return node

    def get(self, path: Sequence[str], default: Optional[T] = None) -> Optional[T]:
        """Return the value stored exactly at `path`, or `default`."""
        node = self._find(path)
        if node is None or not node.has_value:
            return default
        return node.value

    def __contains__(self, path: Sequence[str]) -> bool:
        node = self._find(path)
        return node is not None and node.has_value

    def set(self, path: Sequence[str], value: T) -> None:
        """Store `value` at `path`, creating intermediate nodes as needed."""
        node = self._ensure(path)
        node.value = value
        node.has_value = True

    def get_or_set(self, path: Sequence[str], factory: Callable[[], T]) -> T:
        """Return the value at `path`, storing `factory()` there first if absent."""
        node = self._ensure(path)
        if not node.has_value:
            node.value = factory()
            node.has_value = True
        return node.value

    def delete(self, path: Sequence[str]) -> bool:
        """
        Remove the value stored at `path`.

        Values stored at descendant paths are kept. Branches left without any
        value are pruned. Returns True if a value was removed.
        """
        leaf = self._find(path)
        if leaf is None or not leaf.has_value:
            return False
        leaf.value = None
        leaf.has_value = False
        self._prune(path)
        return True

    def clear(self) -> None:
        """Drop every value and node."""
        self._root = _TrieNode()

    def fill_path(self, path: Sequence[str], fill: Callable[[Optional[T]], object]) -> None:
        """
        Store ``fill(current_value)`` at `path` and at every ancestor of it.

        Nodes are filled from `path` up to the root. If `fill` returns
        `Trie.STOP_FILL` the walk stops and that node and its ancestors are
        left untouched.
        """
        trail = [self._root]
        for segment in path:
            node = trail[-1].children.get(segment)
            if node is None:
                node = _TrieNode()
                trail[-1].children[segment] = node
            trail.append(node)
        for node in reversed(trail):
            new_value = fill(node.value if node.has_value else None)
            if new_value is self.STOP_FILL:
                break
            node.value = new_value
            node.has_value = True
        # Stopping at the leaf of a new branch leaves empty nodes behind.
        self._prune(path)

    def _prune(self, path: Sequence[str]) -> None:
        trail = [self._root]
        for segment in path:
            node = trail[-1].children.get(segment)
            if node is None:
                return
            trail.append(node)
        for i in range(len(trail) - 1, 0, -1):
            if not trail[i].is_empty:
                break
            del trail[i - 1].children[path[i - 1]]

    def has_descendants(self, path: Sequence[str]) -> bool:
        """True if any strict descendant of `path` holds a value."""
        node = self._find(path)
        return node is not None and bool(node.children)

    def iter_dfs(self, path: Sequence[str] = ()) -> Iterator[Tuple[Tuple[str, ...], T]]:
        """
        Yield ``(path, value)`` for every populated node at or below `path`.

        Traversal is pre-order: a node is always yielded before its
        descendants. The trie must not be modified while iterating.
        """
        start = self._find(path)
        if start is None:
            return
        stack = [(tuple(path), start)]
        while stack:
            node_path, node = stack.pop()
            if node.has_value:
                yield node_path, node.value
            # Reversed so that children come out in insertion order.
            for segment, child in reversed(list(node.children.items())):
                stack.append((node_path + (segment,), child))
