"""
TrieStore - Observable Path Trie Store
======================================

This module provides `TrieStore`, a nested state container whose nodes can be
observed by path. Observers subscribe to any node of a JSON-like tree and are
notified whenever that node or any of its descendants changes.

How It Works
------------

The store keeps two tries over the same path segments:

- the **state tree** itself, updated copy-on-write by `triestore.mutator`
  so that every previous root stays valid and unchanged
- the **observers trie**, mapping a path to a `ChangeChannel`, the single
  fan-out point for every subscriber of that exact path

On every change the store computes the paths touched by the action, adds every
observed descendant of those paths (overwriting a parent changes its children
too), and walks the resulting set top-down: observers of ``()`` are notified
before observers of ``("a",)``, which are notified before ``("a", "b")``.

Basic Usage
-----------

```python
from triestore import TrieStore

store = TrieStore({"user": {"name": "Alice"}})

store.observe("user.name").subscribe(print)   # prints "Alice"
store.set("user.name", "Bob")                 # prints "Bob"

with store.batch():
    store.set(["user", "name"], "Carol")
    store.set(["user", "age"], 30)
# observers are notified once, after the batch
```

Observing Changes
-----------------

`observe_changes` emits `StateChange` objects carrying the old value and the
list of changed sub-paths relative to the observed node:

```python
store.observe_changes("user").subscribe(
    lambda change: print(change.old_value, "->", change.value, change.changed_paths)
)
```

Batches
-------

Changes made inside `batch()` (or `run_in_batch`) are applied to the state
immediately and are visible to `get`, but observers are notified only once,
when the outermost batch completes, even if the batch body raises.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
)

import reactivex
from reactivex import Observable
from reactivex import operators as ops
from reactivex.abc import ObserverBase, SchedulerBase
from reactivex.disposable import Disposable
from reactivex.subject import AsyncSubject, Subject

from .errors import InvalidRootType
from .mutator import Action, BatchAction, DeleteAction, SetAction, apply, extract_paths
from .state import MISSING, StateRecord, StateValue, ValueKind, classify, get_in_path, type_label
from .util.paths import (
    Path,
    PathLike,
    is_path_prefix,
    make_path_parser,
    select_unique_path_prefixes,
    select_unique_paths,
)
from .util.trie import Trie

logger = logging.getLogger(__name__)

T = TypeVar("T")

CompareFn = Callable[[StateValue, StateValue, Path], bool]


class DetailLevel(Enum):
    """How much information a subscriber needs with every change."""

    VALUE_ONLY = "value-only"
    WITH_OLD_VALUE_AND_PATHS = "with-old-value-and-paths"


@dataclass(frozen=True)
class StateChange:
    """
    A change of an observed node.

    Attributes:
        value: Current value of the node (``MISSING`` if absent)
        old_value: Value before the change, ``MISSING`` on the initial emission
        changed_paths: Changed sub-paths relative to the observed node;
            ``((),)`` means the node itself was replaced, an empty tuple on a
            change means the node no longer exists
    """

    value: StateValue
    old_value: StateValue = MISSING
    changed_paths: Tuple[Path, ...] = ()


@dataclass(frozen=True)
class ChannelEvent:
    """Event pushed through a `ChangeChannel` for one notification round."""

    action: Action
    value: StateValue
    old_value: StateValue
    changed_paths: Tuple[Path, ...]


class ChangeChannel:
    """
    Fan-out point for all subscribers of one exact path.

    A channel lives while it has at least one subscriber. Once any subscriber
    asks for old values and changed paths, the channel keeps computing them
    until it is torn down.
    """

    def __init__(self, path: Path):
        self.path = path
        self.subject: Subject = Subject()
        self.subscriber_count = 0
        self.details_needed = False
        self.is_torn_down = False

    def push(self, event: ChannelEvent) -> None:
        self.subject.on_next(event)

    def tear_down(self) -> None:
        """Complete the channel. Terminal."""
        if self.is_torn_down:
            return
        self.is_torn_down = True
        self.subject.on_completed()

    def __repr__(self):
        return (
            f"ChangeChannel(path={self.path!r}, subscribers={self.subscriber_count}, "
            f"details_needed={self.details_needed})"
        )


class Subscription:
    """
    Handle of a single subscriber registered on a `ChangeChannel`.

    Attributes:
        id: Store-unique subscription id
        path: Observed path
        initial: Value of the node at subscription time
        changes: Stream of `StateChange` objects for every later change;
            completes on `unsubscribe` or when the store is reset
    """

    def __init__(
        self,
        subscription_id: int,
        store: "TrieStore",
        channel: ChangeChannel,
        initial: StateChange,
        exclude_paths: FrozenSet[Path],
    ):
        self.id = subscription_id
        self.path = channel.path
        self.initial = initial
        self._store = store
        self._channel = channel
        self._stopped: AsyncSubject = AsyncSubject()

        def is_relevant(event: ChannelEvent) -> bool:
            return any(
                path not in exclude_paths for path in extract_paths(event.action)
            )

        operators = [ops.take_until(self._stopped)]
        if exclude_paths:
            operators.append(ops.filter(is_relevant))
        operators.append(
            ops.map(
                lambda event: StateChange(
                    event.value, event.old_value, event.changed_paths
                )
            )
        )
        self.changes: Observable = channel.subject.pipe(*operators)

    @property
    def active(self) -> bool:
        return not self._stopped.is_stopped and not self._channel.is_torn_down

    def unsubscribe(self) -> bool:
        """Detach from the channel. Returns False if already detached."""
        return self._store.unsubscribe(self)

    def _stop(self) -> None:
        if not self._stopped.is_stopped:
            self._stopped.on_next(True)
            self._stopped.on_completed()

    def __repr__(self):
        return f"Subscription(id={self.id}, path={self.path!r}, active={self.active})"


class TrieStore:
    """
    Observable path trie store.

    Features:
    - Copy-on-write updates with structural sharing between state versions
    - Observers on any path, notified on changes of the path or its subtree
    - Deterministic top-down notification order
    - Re-entrant batches that coalesce notifications
    - Optional old values and relative changed paths per notification

    Paths are sequences of string segments or separator-joined strings
    (``"a.b.c"``); the empty sequence and the empty string denote the root.

    Usage:
        store = TrieStore({"a": 1})
        store.observe(["a"]).subscribe(print)   # 1
        store.set(["a"], 2)                     # 2
        store.delete("a")                       # MISSING
    """

    def __init__(
        self,
        initial_state: Optional[StateRecord] = None,
        *,
        path_separator: str = ".",
        path_cache_size: int = 1024,
    ):
        """
        Initialize the store.

        Args:
            initial_state: Root record, an empty record by default
            path_separator: Separator used to split string paths
            path_cache_size: Size of the LRU cache of parsed string paths
        """
        if initial_state is None:
            initial_state = {}
        _check_root(initial_state)
        self._state: StateRecord = initial_state
        self._parse_path = make_path_parser(path_separator, path_cache_size)

        # Path -> channel of the subscribers of that exact path
        self._observers: Trie[ChangeChannel] = Trie()

        # Subscription id -> channel it is registered on
        self._subscriptions: Dict[int, ChangeChannel] = {}
        self._next_subscription_id = 0

        # Batch state
        self._batch_depth = 0
        self._batch_actions: List[Action] = []
        self._state_before_batch: StateRecord = initial_state

        # Thread safety
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def state(self) -> StateRecord:
        """
        Current root state.

        The returned value must not be modified: neither the store nor the
        observers would be aware of the modification.
        """
        return self._state

    def get(self, path: PathLike, default: Any = MISSING) -> StateValue:
        """Return the value stored at `path`, or `default` if there is none."""
        value = get_in_path(self._state, self._parse_path(path))
        return default if value is MISSING else value

    @property
    def has_observers(self) -> bool:
        return not self._observers.is_empty

    def subscriber_count(self, path: PathLike) -> int:
        """Number of active subscribers of the exact `path`."""
        channel = self._observers.get(self._parse_path(path))
        return 0 if channel is None else channel.subscriber_count

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set(
        self, path: PathLike, value: StateValue, compare_fn: Optional[CompareFn] = None
    ) -> None:
        """
        Set `value` at `path`.

        Does nothing if the state already holds `value` (by identity) at the
        path. If `compare_fn(old_value, new_value, path)` is given and returns
        True the write is skipped entirely. Setting ``MISSING`` deletes.

        The state changes immediately. Observers are notified immediately
        unless a batch is active, in which case they are notified when the
        outermost batch completes.
        """
        path = self._parse_path(path)
        with self._lock:
            if compare_fn is not None and compare_fn(
                get_in_path(self._state, path), value, path
            ):
                return
            self._apply(SetAction(path, value))

    def delete(self, path: PathLike) -> None:
        """
        Delete the value at `path`. The path must not be the root.

        Does nothing if there is no value at `path`.
        """
        with self._lock:
            self._apply(DeleteAction(self._parse_path(path)))

    def reset(self, new_state: StateRecord) -> None:
        """
        Complete and remove all subscriptions and replace the state.

        Observers receive no change for this operation: their streams are
        completed before the state is replaced.
        """
        _check_root(new_state)
        with self._lock:
            channels = [channel for _, channel in self._observers.iter_dfs()]
            self._observers.clear()
            self._subscriptions.clear()
            for channel in channels:
                channel.tear_down()
            self._batch_actions = []
            self._state = new_state
            self._state_before_batch = new_state
            logger.debug("Store reset, %d channel(s) completed", len(channels))

    @contextmanager
    def batch(self) -> Iterator["TrieStore"]:
        """
        Context manager grouping changes into a single notification.

        Batches nest: only the outermost one notifies. Notifications are sent
        even if the body raises.

        Usage:
            with store.batch():
                store.set("a", 1)
                store.set("b", 2)
                # observers are notified here
        """
        with self._lock:
            if self._batch_depth == 0:
                self._state_before_batch = self._state
            self._batch_depth += 1
            try:
                yield self
            finally:
                self._batch_depth -= 1
                if self._batch_depth == 0:
                    self._flush_batch()

    def run_in_batch(self, batch_fn: Callable[[], T]) -> T:
        """Run `batch_fn` within a batch and return its result."""
        with self.batch():
            return batch_fn()

    def _flush_batch(self) -> None:
        if not self._batch_actions:
            return
        batch_action = BatchAction(tuple(self._batch_actions))
        self._batch_actions = []
        state_before = self._state_before_batch
        self._state_before_batch = self._state
        if self._state is state_before or self._observers.is_empty:
            return
        logger.debug(
            "Batch completed with %d action(s)", len(batch_action.actions)
        )
        self._notify(batch_action, state_before, self._state)

    def _apply(self, action: Action) -> None:
        """
        Apply the action to the state immediately and notify observers unless
        a batch is active.
        """
        state_before = self._state
        new_state = apply(state_before, action)
        if new_state is state_before:
            return  # Nothing is changed.
        self._state = new_state
        if self._batch_depth > 0:
            self._batch_actions.append(action)
            return
        if not self._observers.is_empty:
            self._notify(action, state_before, new_state)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(
        self,
        path: PathLike,
        detail_level: DetailLevel = DetailLevel.VALUE_ONLY,
        exclude_paths: Sequence[PathLike] = (),
    ) -> Subscription:
        """
        Register a subscriber on `path`.

        The current value is captured in `Subscription.initial`; later changes
        arrive through `Subscription.changes`. Changes whose action touched
        only paths listed in `exclude_paths` are filtered out.
        """
        path = self._parse_path(path)
        excluded = frozenset(self._parse_path(p) for p in exclude_paths)
        with self._lock:
            channel = self._observers.get(path)
            if channel is None:
                channel = ChangeChannel(path)
                self._observers.set(path, channel)
                logger.debug("Created change channel for %r", path)
            if detail_level is DetailLevel.WITH_OLD_VALUE_AND_PATHS:
                channel.details_needed = True
            channel.subscriber_count += 1

            subscription_id = self._next_subscription_id
            self._next_subscription_id += 1
            self._subscriptions[subscription_id] = channel

            initial = StateChange(get_in_path(self._state, path))
            return Subscription(subscription_id, self, channel, initial, excluded)

    def unsubscribe(self, subscription: Subscription) -> bool:
        """
        Remove a subscription. The channel of its path is torn down when no
        subscribers are left.

        Returns:
            True if the subscription was removed, False if it was not active
        """
        with self._lock:
            channel = self._subscriptions.pop(subscription.id, None)
            subscription._stop()
            if channel is None:
                return False
            channel.subscriber_count -= 1
            if channel.subscriber_count == 0:
                if self._observers.get(channel.path) is channel:
                    self._observers.delete(channel.path)
                channel.tear_down()
                logger.debug("Removed change channel for %r", channel.path)
            return True

    def observe(self, path: PathLike, exclude_paths: Sequence[PathLike] = ()) -> Observable:
        """
        Create an observable of the value at `path`.

        Every subscriber first receives the current value, then the new value
        after every change of the path or its subtree.
        """
        return self._observe_changes(path, exclude_paths, DetailLevel.VALUE_ONLY).pipe(
            ops.map(lambda change: change.value)
        )

    def observe_changes(
        self, path: PathLike, exclude_paths: Sequence[PathLike] = ()
    ) -> Observable:
        """
        Create an observable of `StateChange` objects for `path`.

        Every subscriber first receives the current value with ``MISSING`` as
        the old value, then one change per notification round.
        """
        return self._observe_changes(
            path, exclude_paths, DetailLevel.WITH_OLD_VALUE_AND_PATHS
        )

    def _observe_changes(
        self,
        path: PathLike,
        exclude_paths: Sequence[PathLike],
        detail_level: DetailLevel,
    ) -> Observable:
        path = self._parse_path(path)
        exclude_paths = [self._parse_path(p) for p in exclude_paths]

        def on_subscribe(
            observer: ObserverBase, scheduler: Optional[SchedulerBase] = None
        ) -> Disposable:
            subscription = self.subscribe(path, detail_level, exclude_paths)
            observer.on_next(subscription.initial)
            inner = subscription.changes.subscribe(observer)

            def dispose() -> None:
                inner.dispose()
                subscription.unsubscribe()

            return Disposable(dispose)

        return reactivex.create(on_subscribe)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _notify(
        self, action: Action, state_before: StateRecord, state_after: StateRecord
    ) -> None:
        """Notify every channel affected by `action`, ancestors first."""
        touched_paths = extract_paths(action, unique=True)

        # Overwriting a node changes every observed node below it.
        paths = list(touched_paths)
        for touched_path in touched_paths:
            paths.extend(path for path, _ in self._observers.iter_dfs(touched_path))

        # Longest paths first: filling stops at the first node already marked.
        flag_trie: Trie[bool] = Trie()
        for path in sorted(select_unique_paths(paths), key=len, reverse=True):
            flag_trie.fill_path(path, lambda marked: Trie.STOP_FILL if marked else True)

        # Materialised first: observers may (un)subscribe while being notified.
        pending = [path for path, _ in flag_trie.iter_dfs()]
        for path in pending:
            channel = self._observers.get(path)
            if channel is None or channel.is_torn_down:
                continue
            value = get_in_path(state_after, path)
            if channel.details_needed:
                old_value = get_in_path(state_before, path)
                changed_paths = _relative_changed_paths(path, touched_paths, value)
            else:
                old_value = MISSING
                changed_paths = ()
            channel.push(ChannelEvent(action, value, old_value, changed_paths))


def _relative_changed_paths(
    path: Path, touched_paths: Sequence[Path], value: StateValue
) -> Tuple[Path, ...]:
    """
    Changed sub-paths of `path`, relative to it and reduced to the shortest
    non-overlapping prefixes.
    """
    relative: List[Path] = []
    replaced_by_ancestor = False
    for touched_path in touched_paths:
        if is_path_prefix(touched_path, path):
            relative.append(touched_path[len(path) :])
        elif is_path_prefix(path, touched_path):
            replaced_by_ancestor = True
    if replaced_by_ancestor and value is not MISSING:
        relative.append(())
    return tuple(tuple(p) for p in select_unique_path_prefixes(relative))


def _check_root(state: Any) -> None:
    if classify(state) is not ValueKind.RECORD:
        raise InvalidRootType(state, type_label(state))


def create_store(
    initial_state: Optional[StateRecord] = None,
    path_separator: str = ".",
    path_cache_size: int = 1024,
) -> TrieStore:
    """
    Create a store with the specified settings.

    Args:
        initial_state: Root record, an empty record by default
        path_separator: Separator used to split string paths
        path_cache_size: Size of the LRU cache of parsed string paths

    Returns:
        Configured TrieStore instance
    """
    return TrieStore(
        initial_state,
        path_separator=path_separator,
        path_cache_size=path_cache_size,
    )
