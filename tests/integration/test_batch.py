"""Integration tests for batched updates."""

import pytest

from triestore import MISSING, StateChange


@pytest.mark.integration
@pytest.mark.batch
def test_batch_emits_once_after_it_ends(store, observed):
    def batch_fn():
        store.set(["a"], 1)
        assert store.get(["a"]) == 1
        assert len(observed["root"]) == 1
        store.set(["a"], 2)
        assert len(observed["root"]) == 1
        store.set(["b"], 3)
        assert len(observed["root"]) == 1

    store.run_in_batch(batch_fn)

    assert observed["root"] == [{}, {"a": 2, "b": 3}]


@pytest.mark.integration
@pytest.mark.batch
def test_batch_coalesces_old_and_new_values(store):
    store.set(["a"], 0)
    received = []
    store.observe_changes(["a"]).subscribe(received.append)

    with store.batch():
        store.set(["a"], 1)
        store.set(["a"], 2)

    assert received == [StateChange(0), StateChange(2, 0, ((),))]


@pytest.mark.integration
@pytest.mark.batch
def test_nested_batches_notify_only_when_the_outermost_completes(store, observed):
    with store.batch():
        store.set(["a1"], 1)
        with store.batch():
            store.set(["a2"], 2)
        assert observed["root"] == [{}]
        store.run_in_batch(lambda: store.delete(["a2"]))
        assert observed["root"] == [{}]

    assert observed["root"] == [{}, {"a1": 1}]
    assert observed["a1"] == [MISSING, 1]
    assert observed["a2"] == [MISSING, MISSING]


@pytest.mark.integration
@pytest.mark.batch
def test_batch_notifies_even_if_the_body_raises(store, observed):
    with pytest.raises(RuntimeError):
        with store.batch():
            store.set(["a1"], 1)
            raise RuntimeError("boom")

    assert store.get(["a1"]) == 1
    assert observed["a1"] == [MISSING, 1]


@pytest.mark.integration
@pytest.mark.batch
def test_failed_mutation_inside_a_batch_keeps_earlier_changes(store, observed):
    with pytest.raises(TypeError):
        with store.batch():
            store.set(["a1"], 1)
            store.set(["a1", "b1"], 2)

    assert store.state == {"a1": 1}
    assert observed["root"] == [{}, {"a1": 1}]


@pytest.mark.integration
@pytest.mark.batch
def test_batch_of_no_ops_emits_nothing(populated_store, observed):
    with populated_store.batch():
        populated_store.set(["a1", "b1"], 1)
        populated_store.delete(["missing"])

    assert all(events == [] for events in observed.values())


@pytest.mark.integration
@pytest.mark.batch
def test_run_in_batch_returns_the_result_of_the_function(store):
    assert store.run_in_batch(lambda: 42) == 42


@pytest.mark.integration
@pytest.mark.batch
def test_batch_notifies_each_affected_channel_once(populated_store, observed):
    with populated_store.batch():
        populated_store.set(["a1", "b1"], 10)
        populated_store.set(["a2", "b2"], 20)
        populated_store.set(["a1", "b1"], 11)

    assert observed["root"] == [{"a1": {"b1": 11}, "a2": {"b2": 20}}]
    assert observed["a1"] == [{"b1": 11}]
    assert observed["a2"] == [{"b2": 20}]
    assert observed["b1"] == [11]
    assert observed["b2"] == [20]


@pytest.mark.integration
@pytest.mark.batch
def test_batch_changed_paths_cover_every_touched_branch(store):
    received = []
    store.observe_changes([]).subscribe(received.append)

    with store.batch():
        store.set(["x", "y"], 1)
        store.set(["z"], 2)
        store.delete(["x", "q"])

    assert received[-1].changed_paths == (("x", "y"), ("z",))
    assert received[-1].old_value == {}


@pytest.mark.integration
@pytest.mark.batch
def test_subscription_made_inside_a_batch_is_notified_at_the_end(store):
    received = []

    with store.batch():
        store.set(["a"], 1)
        store.observe(["a"]).subscribe(received.append)
        store.set(["a"], 2)

    assert received == [1, 2]


@pytest.mark.integration
@pytest.mark.batch
def test_reset_inside_a_batch_discards_pending_changes(store):
    received = []

    with store.batch():
        store.set(["a"], 1)
        store.reset({"base": True})
        store.observe_changes([]).subscribe(received.append)
        store.set(["b"], 2)

    assert store.state == {"base": True, "b": 2}
    assert received[-1] == StateChange(
        {"base": True, "b": 2}, {"base": True}, (("b",),)
    )
