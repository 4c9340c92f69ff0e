"""
Tests for SavedStateStore.

Tests cover:
- Lazy loading and load-failure retry
- get_at / find lookups
- upsert: idempotence, replacement, eviction, fast-connect flag
- clear and delete_at ordering
- Persist failures with and without rollback
"""

import logging

import pytest

from fastconnect.core.config_manager import FastConnectConfig
from fastconnect.core.saved_state import (
    MAX_SAVED_STATES,
    SavedState,
    SavedStateStore,
    StoreState,
)
from fastconnect.core.saved_state.errors import PersistError
from fastconnect.core.saved_state.file_format import format_saved_states, load_saved_states


def _id(n: int) -> bytes:
    return bytes([n] * 8)


def _names(store):
    return [record.friendly_name for record in store.records]


@pytest.fixture
def failing_writes(monkeypatch):
    """Make every write of the saved-state file fail."""
    def _fail(path, records):
        raise PersistError(f"Error writing to saved state file: {path}", str(path))

    monkeypatch.setattr("fastconnect.core.saved_state.store.write_saved_states", _fail)


class TestLoading:

    def test_starts_unloaded(self, store):
        assert store.state is StoreState.UNLOADED
        assert not store.is_loaded

    def test_first_access_loads(self, store):
        assert store.get_at(0) is None
        assert store.state is StoreState.LOADED

    def test_missing_file_not_created_by_reads(self, store, state_file):
        assert len(store) == 0
        assert not state_file.exists()

    def test_loads_existing_file(self, write_state_file):
        path = write_state_file(
            "A\n01:01:01:01:01:01:01:01\n02:02:02:02:02:02:02:02\n\n"
        )
        store = SavedStateStore(path)
        assert store.get_at(0) == SavedState("A", _id(1), _id(2))

    def test_reads_are_served_from_memory(self, store, state_file, ids):
        assert store.upsert("Room1", ids["talker_a"], ids["controller_a"])
        state_file.unlink()
        assert store.get_at(0).friendly_name == "Room1"

    def test_load_failure_fails_every_operation(self, write_state_file, ids, caplog):
        path = write_state_file("Room1\nnot an id\n")
        store = SavedStateStore(path)

        with caplog.at_level(logging.ERROR):
            assert store.get_at(0) is None
        assert "talker entity ID" in caplog.text

        assert store.upsert("Room2", ids["talker_a"], ids["controller_a"]) is False
        assert store.add("Room2", ids["talker_a"], ids["controller_a"]) is None
        assert store.clear("Room1") is False
        assert store.delete_at(0) is False
        assert store.find("Room1") is None
        assert store.state is StoreState.UNLOADED
        assert path.read_text(encoding="utf-8") == "Room1\nnot an id\n"

    def test_load_is_retried_after_failure(self, write_state_file):
        path = write_state_file("Room1\nnot an id\n")
        store = SavedStateStore(path)
        assert store.get_at(0) is None

        path.write_text(
            "Room1\n01:01:01:01:01:01:01:01\n02:02:02:02:02:02:02:02\n\n", encoding="utf-8"
        )
        assert store.get_at(0).friendly_name == "Room1"
        assert store.is_loaded

    def test_reload_picks_up_file_changes(self, store, state_file, ids):
        assert store.upsert("Room1", ids["talker_a"], ids["controller_a"])
        state_file.write_text("", encoding="utf-8")
        assert store.reload()
        assert len(store) == 0

    def test_from_config(self, state_file):
        config = FastConnectConfig(
            fast_connect_supported=False,
            save_state_file=str(state_file),
            rollback_on_failure=True,
        )
        store = SavedStateStore.from_config(config)
        assert store.path == str(state_file)
        assert not store.fast_connect_supported

    def test_invalid_capacity(self, state_file):
        with pytest.raises(ValueError):
            SavedStateStore(state_file, capacity=0)


class TestGetAt:

    def test_out_of_range(self, store, ids):
        store.upsert("Room1", ids["talker_a"], ids["controller_a"])
        assert store.get_at(1) is None
        assert store.get_at(-1) is None
        assert store.get_at(MAX_SAVED_STATES) is None

    def test_walk_until_none(self, store):
        for i in range(3):
            store.upsert(f"L{i}", _id(i), _id(i + 10))
        walked = []
        index = 0
        while (record := store.get_at(index)) is not None:
            walked.append(record.friendly_name)
            index += 1
        assert walked == ["L0", "L1", "L2"]


class TestUpsert:

    def test_missing_file_scenario(self, store, state_file):
        assert store.get_at(0) is None

        talker = [0x01, 0x02, 0x03, 0x04, 0x05, 0x06, 0x07, 0x08]
        controller = [0x11, 0x12, 0x13, 0x14, 0x15, 0x16, 0x17, 0x18]
        assert store.upsert("Room1", talker, controller) is True

        expected = SavedState("Room1", bytes(talker), bytes(controller))
        assert store.get_at(0) == expected

        reloaded = SavedStateStore(state_file)
        assert reloaded.get_at(0) == expected
        assert reloaded.get_at(0).talker_entity_id == bytes(talker)
        assert reloaded.get_at(0).controller_entity_id == bytes(controller)

    def test_file_content(self, store, state_file, ids):
        store.upsert("Room1", ids["talker_a"], ids["controller_a"])
        assert state_file.read_text(encoding="utf-8") == (
            "Room1\n01:02:03:04:05:06:07:08\n11:12:13:14:15:16:17:18\n\n"
        )

    def test_idempotent(self, store, state_file, ids):
        assert store.upsert("Room1", ids["talker_a"], ids["controller_a"])
        content = state_file.read_text(encoding="utf-8")
        mtime = state_file.stat().st_mtime_ns

        assert store.upsert("Room1", ids["talker_a"], ids["controller_a"])
        assert len(store) == 1
        assert state_file.read_text(encoding="utf-8") == content
        assert state_file.stat().st_mtime_ns == mtime

    def test_idempotent_does_not_write(self, store, ids, monkeypatch):
        store.upsert("Room1", ids["talker_a"], ids["controller_a"])
        calls = []
        monkeypatch.setattr(
            "fastconnect.core.saved_state.store.write_saved_states",
            lambda path, records: calls.append(list(records)),
        )
        assert store.upsert("Room1", ids["talker_a"], ids["controller_a"])
        assert calls == []

    def test_changed_ids_replace_and_move_to_end(self, store, ids):
        store.upsert("Room1", ids["talker_a"], ids["controller_a"])
        store.upsert("Room2", _id(2), _id(3))
        store.upsert("Room3", _id(4), _id(5))

        assert store.upsert("Room1", ids["talker_b"], ids["controller_a"])

        assert _names(store) == ["Room2", "Room3", "Room1"]
        assert store.get_at(2) == SavedState("Room1", ids["talker_b"], ids["controller_a"])
        assert [r.friendly_name for r in store.records].count("Room1") == 1

    def test_changed_controller_only(self, store, ids):
        store.upsert("Room1", ids["talker_a"], ids["controller_a"])
        assert store.upsert("Room1", ids["talker_a"], ids["controller_b"])
        assert len(store) == 1
        assert store.get_at(0).controller_entity_id == ids["controller_b"]

    def test_replace_when_full_does_not_evict(self, store):
        for name in "ABCD":
            store.upsert(name, _id(1), _id(2))
        assert store.upsert("B", _id(9), _id(9))
        assert _names(store) == ["A", "C", "D", "B"]

    def test_fifth_record_evicts_oldest(self, store, state_file):
        for name in "ABCD":
            assert store.upsert(name, _id(ord(name)), _id(ord(name) + 1))
        assert len(store) == MAX_SAVED_STATES

        assert store.upsert("E", _id(1), _id(2))

        assert _names(store) == ["B", "C", "D", "E"]
        assert [r.friendly_name for r in load_saved_states(state_file)] == ["B", "C", "D", "E"]

    def test_size_never_exceeds_capacity(self, store):
        for i in range(10):
            assert store.upsert(f"L{i}", _id(i), _id(i))
            assert len(store) <= MAX_SAVED_STATES
        assert _names(store) == ["L6", "L7", "L8", "L9"]

    def test_disabled_is_noop(self, state_file, ids):
        store = SavedStateStore(state_file, fast_connect_supported=False)
        assert store.upsert("Room1", ids["talker_a"], ids["controller_a"]) is False
        assert not state_file.exists()
        assert len(store) == 0

    def test_long_name_matches_truncated_record(self, store, ids):
        name = "n" * 80
        store.upsert(name, ids["talker_a"], ids["controller_a"])
        assert store.upsert(name, ids["talker_a"], ids["controller_a"])
        assert len(store) == 1

    def test_text_ids_accepted(self, store):
        assert store.upsert("Room1", "01:02:03:04:05:06:07:08", "11:12:13:14:15:16:17:18")
        assert store.get_at(0).talker_entity_id == bytes(range(1, 9))

    def test_invalid_arguments_raise(self, store):
        with pytest.raises(ValueError):
            store.upsert("", _id(1), _id(2))
        with pytest.raises(ValueError):
            store.upsert("Room\n1", _id(1), _id(2))
        with pytest.raises(ValueError):
            store.upsert("Room1", b"\x00", _id(2))

    def test_persist_failure_keeps_memory_change(self, store, state_file, ids, failing_writes, caplog):
        with caplog.at_level(logging.ERROR):
            assert store.upsert("Room1", ids["talker_a"], ids["controller_a"]) is False
        assert "Error saving state" in caplog.text
        assert _names(store) == ["Room1"]
        assert not state_file.exists()

    def test_persist_failure_rolls_back(self, state_file, ids, failing_writes):
        store = SavedStateStore(state_file, rollback_on_failure=True)
        assert store.upsert("Room1", ids["talker_a"], ids["controller_a"]) is False
        assert len(store) == 0

    def test_rollback_restores_replaced_and_evicted(self, state_file, monkeypatch):
        store = SavedStateStore(state_file, rollback_on_failure=True)
        for name in "ABCD":
            store.upsert(name, _id(1), _id(2))
        before = store.records

        def _fail(path, records):
            raise PersistError("mock write failure", str(path))

        monkeypatch.setattr("fastconnect.core.saved_state.store.write_saved_states", _fail)
        assert store.upsert("E", _id(3), _id(4)) is False
        assert store.upsert("B", _id(5), _id(6)) is False
        assert store.records == before


class TestAdd:

    def test_returns_index(self, store, ids):
        assert store.add("A", ids["talker_a"], ids["controller_a"]) == 0
        assert store.add("B", ids["talker_a"], ids["controller_a"]) == 1

    def test_allows_duplicates(self, store, ids):
        store.add("A", ids["talker_a"], ids["controller_a"])
        store.add("A", ids["talker_b"], ids["controller_b"])
        assert _names(store) == ["A", "A"]
        assert store.find("A") == 0

    def test_ignores_fast_connect_flag(self, state_file, ids):
        store = SavedStateStore(state_file, fast_connect_supported=False)
        assert store.add("A", ids["talker_a"], ids["controller_a"]) == 0

    def test_evicts_when_full(self, store):
        for name in "ABCD":
            store.add(name, _id(1), _id(2))
        assert store.add("E", _id(1), _id(2)) == MAX_SAVED_STATES - 1
        assert _names(store) == ["B", "C", "D", "E"]

    def test_persist_failure(self, store, ids, failing_writes):
        assert store.add("A", ids["talker_a"], ids["controller_a"]) is None


class TestClear:

    def test_clear_existing(self, store, state_file):
        for name in "ABC":
            store.upsert(name, _id(1), _id(2))
        assert store.clear("B") is True
        assert _names(store) == ["A", "C"]
        assert [r.friendly_name for r in load_saved_states(state_file)] == ["A", "C"]

    def test_clear_missing(self, store, state_file, caplog):
        store.upsert("A", _id(1), _id(2))
        content = state_file.read_text(encoding="utf-8")

        with caplog.at_level(logging.WARNING):
            assert store.clear("Nope") is False
        assert 'Unable to find saved state to clear:  listener_id="Nope"' in caplog.text
        assert len(store) == 1
        assert state_file.read_text(encoding="utf-8") == content

    def test_clear_on_empty_store(self, store, state_file):
        assert store.clear("A") is False
        assert not state_file.exists()

    def test_clear_last_record_leaves_empty_file(self, store, state_file):
        store.upsert("A", _id(1), _id(2))
        assert store.clear("A")
        assert state_file.read_text(encoding="utf-8") == ""

    def test_clear_works_with_fast_connect_disabled(self, write_state_file):
        path = write_state_file(
            "A\n01:01:01:01:01:01:01:01\n02:02:02:02:02:02:02:02\n\n"
        )
        store = SavedStateStore(path, fast_connect_supported=False)
        assert store.clear("A")

    def test_clear_persist_failure(self, store, failing_writes):
        store.upsert("A", _id(1), _id(2))
        assert _names(store) == ["A"]
        assert store.clear("A") is False


class TestDeleteAt:

    def _fill(self, store):
        for name in "ABCD":
            store.upsert(name, _id(ord(name)), _id(ord(name)))

    def test_delete_middle_preserves_order(self, store, state_file):
        self._fill(store)
        assert store.delete_at(1)
        assert _names(store) == ["A", "C", "D"]
        assert state_file.read_text(encoding="utf-8") == format_saved_states(store.records)

    def test_delete_first(self, store):
        self._fill(store)
        assert store.delete_at(0)
        assert _names(store) == ["B", "C", "D"]

    def test_delete_last(self, store):
        self._fill(store)
        assert store.delete_at(3)
        assert _names(store) == ["A", "B", "C"]

    @pytest.mark.parametrize("index", [-1, 4, 10])
    def test_out_of_range(self, store, state_file, index):
        self._fill(store)
        content = state_file.read_text(encoding="utf-8")
        assert store.delete_at(index) is False
        assert len(store) == 4
        assert state_file.read_text(encoding="utf-8") == content

    def test_delete_on_empty(self, store):
        assert store.delete_at(0) is False

    def test_persist_failure_without_rollback(self, store, monkeypatch):
        self._fill(store)

        def _fail(path, records):
            raise PersistError("mock write failure", str(path))

        monkeypatch.setattr("fastconnect.core.saved_state.store.write_saved_states", _fail)
        assert store.delete_at(0) is False
        assert _names(store) == ["B", "C", "D"]


class TestPathOverride:

    def test_store_uses_path_before_comma(self, state_file, ids):
        store = SavedStateStore(f"{state_file},override")
        assert store.upsert("Room1", ids["talker_a"], ids["controller_a"])
        assert state_file.exists()
        assert SavedStateStore(state_file).get_at(0).friendly_name == "Room1"
