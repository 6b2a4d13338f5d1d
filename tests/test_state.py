"""Tests for the state store and its file persistence."""

import json
import logging
from typing import Any

import pytest

from react_agent.exceptions import StateStoreError
from react_agent.services.state import StateKey, StateStore


@pytest.fixture
def counter_key():
    return StateKey.durable("counter", int, lambda: 0)


@pytest.fixture
def notes_key():
    return StateKey.durable("notes", dict[str, str], dict)


@pytest.fixture
def scratch_key():
    return StateKey.transient("scratch", list[str], list)


class TestStateKey:
    """Tests for typed state keys."""

    def test_storage_name_includes_type(self, counter_key, notes_key):
        """Test persisted entry names carry the value type."""
        assert counter_key.storage_name == "counter:int"
        assert notes_key.storage_name == "notes:dict[str, str]"

    def test_keys_compare_by_identity(self):
        """Test that two keys with the same name are distinct entries."""
        first = StateKey.transient("same", int, lambda: 1)
        second = StateKey.transient("same", int, lambda: 2)
        store = StateStore()

        store.set(first, 10)
        assert store.get(first) == 10
        assert store.get(second) == 2

    def test_persistence_flag(self, counter_key, scratch_key):
        """Test durable and transient constructors."""
        assert counter_key.persistent
        assert not scratch_key.persistent


class TestStateStore:
    """Tests for in-memory store operations."""

    def test_get_materializes_default(self, notes_key):
        """Test that get stores the default so later mutations stick."""
        store = StateStore()
        assert not store.contains(notes_key)

        store.get(notes_key)["a"] = "b"

        assert store.contains(notes_key)
        assert store.get(notes_key) == {"a": "b"}

    def test_set_overwrites(self, counter_key):
        """Test that set replaces the value unconditionally."""
        store = StateStore()
        store.set(counter_key, 1)
        store.set(counter_key, 5)
        assert store.get(counter_key) == 5
        assert store.keys() == [counter_key]


class TestStatePersistence:
    """Tests for saving and loading the persisted subset."""

    def test_round_trip(self, tmp_path, counter_key, notes_key):
        """Test that saved values load back equal into a fresh store."""
        path = tmp_path / "state.json"
        store = StateStore()
        store.set(counter_key, 42)
        store.get(notes_key)["name"] = "Ada"

        assert store.save_to_file(path) == 2

        fresh = StateStore()
        assert fresh.load_from_file(path, [counter_key, notes_key]) == 2
        assert fresh.get(counter_key) == 42
        assert fresh.get(notes_key) == {"name": "Ada"}

    def test_transient_keys_never_written(self, tmp_path, counter_key, scratch_key):
        """Test that only persistent keys reach the file."""
        path = tmp_path / "state.json"
        store = StateStore()
        store.set(counter_key, 1)
        store.set(scratch_key, ["temporary"])

        store.save_to_file(path)

        data = json.loads(path.read_text())
        assert data == {"counter:int": "1"}

    def test_file_format(self, tmp_path, notes_key):
        """Test that each value is stored as its own JSON-encoded string."""
        path = tmp_path / "state.json"
        store = StateStore()
        store.set(notes_key, {"a": "b"})
        store.save_to_file(path)

        data = json.loads(path.read_text())
        assert json.loads(data["notes:dict[str, str]"]) == {"a": "b"}

    def test_same_name_different_types_do_not_collide(self, tmp_path):
        """Test that keys sharing a name but not a type keep separate entries."""
        as_int = StateKey.durable("value", int, lambda: 0)
        as_str = StateKey.durable("value", str, str)
        path = tmp_path / "state.json"

        store = StateStore()
        store.set(as_int, 7)
        store.set(as_str, "seven")
        store.save_to_file(path)

        fresh = StateStore()
        fresh.load_from_file(path, [as_int, as_str])
        assert fresh.get(as_int) == 7
        assert fresh.get(as_str) == "seven"

    def test_save_creates_parent_directories(self, tmp_path, counter_key):
        """Test that missing directories are created."""
        path = tmp_path / "nested" / "dir" / "state.json"
        store = StateStore()
        store.set(counter_key, 3)

        store.save_to_file(path)

        assert path.exists()

    def test_save_leaves_no_temporary_files(self, tmp_path, counter_key):
        """Test that the atomic write cleans up after itself."""
        path = tmp_path / "state.json"
        store = StateStore()
        store.set(counter_key, 3)

        store.save_to_file(path)
        store.save_to_file(path)

        assert [p.name for p in tmp_path.iterdir()] == ["state.json"]

    def test_unencodable_value_raises_state_store_error(self, tmp_path):
        """Test that a value the key cannot serialize surfaces as StateStoreError."""
        loose_key = StateKey.durable("loose", Any, dict)
        path = tmp_path / "state.json"
        store = StateStore()
        store.set(loose_key, object())

        with pytest.raises(StateStoreError, match="Failed to encode state"):
            store.save_to_file(path)

        assert not path.exists()

    def test_save_failure_raises_state_store_error(self, tmp_path, counter_key):
        """Test that I/O errors surface as StateStoreError."""
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("file")
        store = StateStore()
        store.set(counter_key, 1)

        with pytest.raises(StateStoreError, match="Failed to save state"):
            store.save_to_file(blocker / "state.json")

    def test_load_missing_file_is_noop(self, tmp_path, counter_key):
        """Test that a missing file is treated as a first run."""
        store = StateStore()
        assert store.load_from_file(tmp_path / "missing.json", [counter_key]) == 0
        assert not store.contains(counter_key)

    def test_load_corrupt_file_raises(self, tmp_path, counter_key):
        """Test that an unparsable file raises StateStoreError."""
        path = tmp_path / "state.json"
        path.write_text("{not json")

        with pytest.raises(StateStoreError, match="Failed to read state"):
            StateStore().load_from_file(path, [counter_key])

    def test_load_non_object_raises(self, tmp_path, counter_key):
        """Test that a JSON array is rejected."""
        path = tmp_path / "state.json"
        path.write_text("[1, 2]")

        with pytest.raises(StateStoreError, match="does not contain a JSON object"):
            StateStore().load_from_file(path, [counter_key])

    def test_bad_entry_is_skipped(self, tmp_path, counter_key, notes_key, caplog):
        """Test that one undecodable entry is logged and skipped."""
        path = tmp_path / "state.json"
        path.write_text(json.dumps({"counter:int": "not a number", "notes:dict[str, str]": '{"a": "b"}'}))
        store = StateStore()

        with caplog.at_level(logging.WARNING, logger="react_agent.services.state"):
            loaded = store.load_from_file(path, [counter_key, notes_key])

        assert loaded == 1
        assert store.get(notes_key) == {"a": "b"}
        assert not store.contains(counter_key)
        assert "Skipping state entry 'counter:int'" in caplog.text

    def test_unknown_entries_and_transient_keys_ignored(self, tmp_path, scratch_key):
        """Test that entries without a matching persistent key are ignored."""
        path = tmp_path / "state.json"
        path.write_text(json.dumps({"other:int": "1", "scratch:list[str]": '["x"]'}))
        store = StateStore()

        assert store.load_from_file(path, [scratch_key]) == 0
        assert not store.contains(scratch_key)
