"""Tests for the key-value stores and TaskStore load/save behaviour."""

import json
from datetime import date

import pytest

import storage
from board import TaskStore
from errors import PersistenceWarning, StorageError, ValidationError
from models import COMPLETED, OPENED
from storage import JsonFileStore, MemoryStore, TASKS_KEY, THEME_KEY


class FailingWrites(MemoryStore):
    def set_item(self, key, value):
        raise OSError("quota exceeded")


class TestJsonFileStore:
    def test_missing_file_reads_empty(self, tmp_path):
        kv = JsonFileStore(tmp_path / "nope.json")
        assert kv.get_item(TASKS_KEY) is None

    def test_set_and_get(self, tmp_path):
        path = tmp_path / "sub" / "storage.json"
        kv = JsonFileStore(path)
        kv.set_item(TASKS_KEY, "[]")
        kv.set_item(THEME_KEY, "light")
        assert json.loads(path.read_text()) == {TASKS_KEY: "[]", THEME_KEY: "light"}
        assert JsonFileStore(path).get_item(THEME_KEY) == "light"

    def test_remove_item(self, tmp_path):
        kv = JsonFileStore(tmp_path / "s.json")
        kv.set_item(THEME_KEY, "dark")
        kv.remove_item(THEME_KEY)
        assert kv.get_item(THEME_KEY) is None

    def test_corrupt_file_raises_on_read(self, tmp_path):
        path = tmp_path / "s.json"
        path.write_text("{ not json")
        with pytest.raises(StorageError, match="Invalid JSON"):
            JsonFileStore(path).get_item(TASKS_KEY)

    def test_corrupt_file_is_replaced_on_write(self, tmp_path):
        path = tmp_path / "s.json"
        path.write_text("[1, 2]")
        kv = JsonFileStore(path)
        kv.set_item(THEME_KEY, "dark")
        assert kv.get_item(THEME_KEY) == "dark"


class TestLoadSaveTasks:
    def test_absent_key_is_empty(self):
        assert storage.load_tasks(MemoryStore()) == []

    def test_invalid_json(self):
        with pytest.raises(StorageError, match="Invalid JSON"):
            storage.load_tasks(MemoryStore({TASKS_KEY: "{oops"}))

    def test_not_a_list(self):
        with pytest.raises(StorageError, match="array"):
            storage.load_tasks(MemoryStore({TASKS_KEY: '{"a": 1}'}))

    def test_malformed_records_skipped(self):
        payload = json.dumps([
            {"id": "1", "title": "ok", "description": "d", "status": "Opened", "eta": 2},
            {"title": "no id"},
            "junk",
        ])
        tasks = storage.load_tasks(MemoryStore({TASKS_KEY: payload}))
        assert [t.id for t in tasks] == ["1"]

    def test_bad_field_values_tolerated(self):
        payload = ('[{"id": "1", "title": "ok", "description": "d", "eta": 2},'
                   ' {"id": "2", "title": "huge", "description": "d", "eta": 1e999},'
                   ' {"id": "3", "title": "subs", "description": "d", "subtasks": 5}]')
        tasks = storage.load_tasks(MemoryStore({TASKS_KEY: payload}))
        assert [t.id for t in tasks] == ["1", "2", "3"]
        assert tasks[1].eta == 1
        assert tasks[2].subtasks == []

    def test_unparsable_record_skipped(self, caplog, monkeypatch):
        real = storage.Task.from_dict

        def from_dict(raw):
            if raw["id"] == "2":
                raise ValueError("bad record")
            return real(raw)

        monkeypatch.setattr(storage.Task, "from_dict", from_dict)
        payload = json.dumps([
            {"id": "1", "title": "ok", "description": "d"},
            {"id": "2", "title": "bad", "description": "d"},
        ])
        tasks = storage.load_tasks(MemoryStore({TASKS_KEY: payload}))
        assert [t.id for t in tasks] == ["1"]
        assert "Skipping malformed task record at index 1" in caplog.text

    def test_duplicate_ids_keep_first(self, caplog):
        payload = json.dumps([
            {"id": "1", "title": "first", "description": "d"},
            {"id": "1", "title": "second", "description": "d"},
            {"id": "2", "title": "other", "description": "d"},
        ])
        tasks = storage.load_tasks(MemoryStore({TASKS_KEY: payload}))
        assert [(t.id, t.title) for t in tasks] == [("1", "first"), ("2", "other")]
        assert "duplicate task id 1" in caplog.text

    def test_missing_eta_defaults_to_one(self):
        payload = json.dumps([{"id": "1", "title": "t", "description": "d", "eta": None},
                              {"id": "2", "title": "t", "description": "d", "eta": "lots"}])
        tasks = storage.load_tasks(MemoryStore({TASKS_KEY: payload}))
        assert [t.eta for t in tasks] == [1, 1]

    def test_store_loads_past_bad_records(self, clock):
        payload = '[{"id": "1", "title": "big", "description": "d", "eta": 1e999, "subtasks": 5}]'
        store = TaskStore(MemoryStore({TASKS_KEY: payload}), clock=clock).load()
        assert [t.title for t in store.tasks] == ["big"]

    def test_save_wraps_write_errors(self):
        with pytest.raises(StorageError):
            storage.save_tasks(FailingWrites(), [])


class TestTheme:
    def test_defaults_to_dark(self):
        assert storage.load_theme(MemoryStore()) == storage.DARK

    @pytest.mark.parametrize("raw, expected", [("dark", "dark"), ("light", "light"), ("blue", "light")])
    def test_stored_values(self, raw, expected):
        assert storage.load_theme(MemoryStore({THEME_KEY: raw})) == expected

    def test_unreadable_store_defaults_to_dark(self, tmp_path):
        path = tmp_path / "s.json"
        path.write_text("nope")
        assert storage.load_theme(JsonFileStore(path)) == storage.DARK

    def test_save_theme(self):
        kv = MemoryStore()
        storage.save_theme(kv, storage.LIGHT)
        assert kv.get_item(THEME_KEY) == "light"

    def test_save_invalid_theme(self):
        with pytest.raises(ValidationError):
            storage.save_theme(MemoryStore(), "sepia")


class TestTaskStorePersistence:
    def test_round_trip_through_file(self, tmp_path, clock):
        path = tmp_path / "storage.json"
        first = TaskStore(JsonFileStore(path), clock=clock).load()
        task = first.create(title="A", description="d", eta=4, due_date=date(2026, 10, 25),
                            subtasks=[{"title": "s", "eta": 2}])
        first.change_status(task.id, COMPLETED)

        second = TaskStore(JsonFileStore(path), clock=clock).load()
        assert second.tasks == first.tasks
        raw = json.loads(json.loads(path.read_text())[TASKS_KEY])
        assert raw[0]["completedDate"] == clock.now
        assert raw[0]["subtasks"][0]["eta"] == 2
        assert isinstance(raw[0]["dueDate"], int)

    def test_unparsable_snapshot_starts_empty(self, clock):
        kv = MemoryStore({TASKS_KEY: "not json"})
        with pytest.warns(PersistenceWarning, match="starting empty"):
            store = TaskStore(kv, clock=clock).load()
        assert len(store) == 0

    def test_failed_write_keeps_memory_state(self, clock):
        store = TaskStore(FailingWrites(), clock=clock)
        with pytest.warns(PersistenceWarning, match="Could not save"):
            task = store.create(title="A", description="d", due_date=date(2026, 10, 25))
        assert store.get(task.id).status == OPENED
        with pytest.warns(PersistenceWarning):
            assert store.save() is False

    def test_save_reports_success(self, store):
        assert store.save() is True
