"""
Shared pytest fixtures and configuration for TrieStore tests.
"""

import pytest

from triestore import TrieStore


@pytest.fixture
def store():
    """Provide a fresh store with an empty root record."""
    return TrieStore({})


@pytest.fixture
def observed(store):
    """
    Subscribe value observers to the topology ``{a1: {b1: 1}, a2: {b2: 2}}``.

    Returns a dict mapping a node name to the list of values it received,
    starting with the initial emission.
    """
    events = {"root": [], "a1": [], "a2": [], "b1": [], "b2": []}
    store.observe([]).subscribe(events["root"].append)
    store.observe(["a1"]).subscribe(events["a1"].append)
    store.observe(["a2"]).subscribe(events["a2"].append)
    store.observe(["a1", "b1"]).subscribe(events["b1"].append)
    store.observe(["a2", "b2"]).subscribe(events["b2"].append)
    return events


@pytest.fixture
def populated_store(store, observed):
    """Store holding ``{a1: {b1: 1}, a2: {b2: 2}}`` with `observed` subscribers and cleared logs."""
    store.set([], {"a1": {"b1": 1}, "a2": {"b2": 2}})
    for node_events in observed.values():
        node_events.clear()
    return store
