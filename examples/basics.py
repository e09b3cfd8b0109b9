from triestore import MISSING, create_store

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Creating a store")
print("-" * 100)
print()

# The root of the state is always a record.
store = create_store({"user": {"name": "Alice", "age": 30}, "todos": []})

# Paths are tuples of segments, or dotted strings.
print(store.get(("user", "name")))
print(store.get("user.age"))
print(store.get("user.email"))  # MISSING

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Observing paths")
print("-" * 100)
print()

# An observer receives the current value first, then the value after every change
# of the path or anything below it.
user_sub = store.observe("user").subscribe(lambda user: print(f"user: {user}"))
name_sub = store.observe("user.name").subscribe(lambda name: print(f"name: {name}"))

store.set("user.name", "Bob")  # Both observers fire, "user" first.
store.set("user.age", 31)  # Only the "user" observer fires.
store.set("user.age", 31, compare_fn=lambda old, new, path: old == new)  # Skipped.

# Overwriting an ancestor notifies the observers below it.
store.set("user", {"name": "Charlie"})

name_sub.dispose()
store.set("user.name", "Dana")  # The "name" observer is gone.

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Arrays")
print("-" * 100)
print()

todos_sub = store.observe("todos").subscribe(lambda todos: print(f"todos: {todos}"))

# Writing past the end of an array pads it with MISSING.
store.set("todos.0", "write docs")
store.set("todos.2", "ship it")
print(store.get("todos.1") is MISSING)

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Batching")
print("-" * 100)
print()

# Observers are notified once, when the outermost batch completes.
with store.batch():
    store.set("user.name", "Eve")
    store.set("user.age", 40)
    with store.batch():
        store.delete("user.age")

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Detailed changes")
print("-" * 100)
print()


def log_change(change):
    print(f"{change.old_value} -> {change.value}, changed: {change.changed_paths}")


changes_sub = store.observe_changes("user").subscribe(log_change)
store.set("user.name", "Frank")

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Resetting")
print("-" * 100)
print()

# Reset completes every observer without notifying them of the new state.
store.observe("user").subscribe(on_completed=lambda: print("user stream completed"))
store.reset({})
print(store.has_observers)

user_sub.dispose()
todos_sub.dispose()
changes_sub.dispose()
