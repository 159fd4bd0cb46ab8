"""Persistence helpers for the task board.

State lives in a small key-value store holding string values, one key for
the task collection (a JSON array) and one for the theme preference. The
on-disk store is a single JSON object so the file mirrors what a browser's
local storage would hold.
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from errors import StorageError, ValidationError
from models import Task

logger = logging.getLogger(__name__)

TASKS_KEY = 'task_manager_data'
THEME_KEY = 'task_manager_theme'

DARK = 'dark'
LIGHT = 'light'


class MemoryStore:
    """Dict-backed key-value store (ephemeral sessions, tests)."""

    def __init__(self, items: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileStore:
    """Key-value store persisted as one JSON object on disk.

    Missing file -> empty store. A corrupt file raises StorageError on read;
    writes replace the file atomically.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StorageError(f"Invalid JSON in store file {self.path}: {e}") from e
        except OSError as e:
            raise StorageError(f"Failed to read store file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Store file {self.path} does not hold a JSON object")
        return data

    def _write_all(self, data: Dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix='.store-', suffix='.json')
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=4, ensure_ascii=False)
                os.replace(tmp, self.path)
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
        except OSError as e:
            raise StorageError(f"Failed to save store file {self.path}: {e}") from e

    def get_item(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return None if value is None else str(value)

    def set_item(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
        except StorageError:
            # a corrupt file is overwritten rather than blocking every save
            logger.warning("Discarding unreadable store file %s", self.path)
            data = {}
        data[key] = value
        self._write_all(data)

    def remove_item(self, key: str) -> None:
        data = self._read_all()
        if data.pop(key, None) is not None:
            self._write_all(data)


def load_tasks(store: Any) -> List[Task]:
    """Read the task collection.

    Absent key -> empty list. Unparsable payload -> StorageError.
    Records without an id or title, records that fail to parse and
    repeated ids are skipped.
    """
    try:
        raw = store.get_item(TASKS_KEY)
    except OSError as e:
        raise StorageError(f"Failed to read tasks: {e}") from e
    if raw is None:
        return []
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise StorageError(f"Invalid JSON in stored tasks: {e}") from e
    if not isinstance(data, list):
        raise StorageError("Stored tasks must be a JSON array")
    tasks: List[Task] = []
    seen = set()
    for i, entry in enumerate(data):
        if not isinstance(entry, dict) or entry.get('id') is None or entry.get('title') is None:
            logger.warning("Skipping malformed task record at index %d", i)
            continue
        try:
            task = Task.from_dict(entry)
        except (TypeError, ValueError, OverflowError) as e:
            logger.warning("Skipping malformed task record at index %d: %s", i, e)
            continue
        if task.id in seen:
            logger.warning("Skipping duplicate task id %s at index %d", task.id, i)
            continue
        seen.add(task.id)
        tasks.append(task)
    return tasks


def save_tasks(store: Any, tasks: Iterable[Task]) -> None:
    """Overwrite the stored collection with ``tasks``."""
    try:
        payload = json.dumps([t.to_dict() for t in tasks])
        store.set_item(TASKS_KEY, payload)
    except (TypeError, ValueError, OSError) as e:
        raise StorageError(f"Failed to save tasks: {e}") from e


def load_theme(store: Any) -> str:
    """Dark unless 'light' (or anything other than 'dark') was saved."""
    try:
        value = store.get_item(THEME_KEY)
    except (StorageError, OSError) as e:
        logger.warning("Could not read theme preference: %s", e)
        return DARK
    if value is None or value == DARK:
        return DARK
    return LIGHT


def save_theme(store: Any, mode: str) -> None:
    if mode not in (DARK, LIGHT):
        raise ValidationError(f"Invalid theme: {mode}. Expected dark or light")
    try:
        store.set_item(THEME_KEY, mode)
    except OSError as e:
        raise StorageError(f"Failed to save theme: {e}") from e
