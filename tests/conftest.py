"""Pytest configuration and fixtures for the task board tests."""

import itertools
from datetime import date, datetime

import pytest

from board import TaskStore
from dates import DAY_MS, to_epoch_ms
from storage import MemoryStore


class FakeClock:
    """Deterministic clock returning epoch ms; advance() moves it forward."""

    def __init__(self, start: datetime):
        self.now = to_epoch_ms(start)

    def __call__(self) -> int:
        return self.now

    def advance(self, days: float = 0, ms: int = 0) -> int:
        self.now += int(days * DAY_MS) + ms
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 10, 18, 12, 0, 0))


@pytest.fixture
def kv():
    return MemoryStore()


@pytest.fixture
def ids():
    counter = itertools.count(1)
    return lambda: f"id{next(counter):04d}"


@pytest.fixture
def store(kv, clock, ids):
    return TaskStore(kv, clock=clock, id_factory=ids).load()


@pytest.fixture
def due():
    return date(2026, 10, 25)


@pytest.fixture
def make_task(store, due):
    """Create a task with sensible defaults."""
    def _make(title="Task", description="details", eta=5, due_date=None, subtasks=()):
        return store.create(title=title, description=description, eta=eta,
                            due_date=due_date or due, subtasks=subtasks)
    return _make
