"""Tests for Task/Subtask records and date helpers."""

from datetime import date, datetime

import pytest

from dates import format_date, parse_date, start_of_day, to_epoch_ms, tomorrow
from errors import ValidationError
from models import ARCHIVED, OPENED, Subtask, Task


class TestTask:
    def test_from_dict_roundtrip(self):
        payload = {
            "id": "abc",
            "title": "Ship",
            "description": "release",
            "status": ARCHIVED,
            "eta": 5,
            "dueDate": 1760000000000,
            "completedDate": 1760100000000,
            "archivedAt": 1760200000000,
            "createdAt": 1759000000000,
            "subtasks": [
                {"id": "s1", "title": "tag", "completed": True, "eta": 2, "dueDate": None},
            ],
        }
        assert Task.from_dict(payload).to_dict() == payload

    def test_archived_at_omitted_until_set(self):
        task = Task(id="1", title="t", description="d")
        assert "archivedAt" not in task.to_dict()

    def test_from_dict_tolerates_missing_fields(self):
        task = Task.from_dict({"id": 7, "title": "legacy"})
        assert task.id == "7"
        assert task.status == OPENED
        assert task.subtasks == []
        assert task.due_date is None
        assert task.eta == 1

    def test_point_helpers(self):
        task = Task(id="1", title="t", description="d", eta=5, subtasks=[
            Subtask(id="a", title="a", eta=2, completed=True),
            Subtask(id="b", title="b", eta=1),
        ])
        assert task.subtasks_completed == 1
        assert task.subtask_points == 3
        assert task.remaining_points == 2
        assert task.find_subtask("b").title == "b"
        assert task.find_subtask("zz") is None

    def test_copy_is_deep_for_subtasks(self):
        task = Task(id="1", title="t", description="d", subtasks=[Subtask(id="a", title="a")])
        clone = task.copy()
        clone.subtasks[0].completed = True
        assert task.subtasks[0].completed is False


class TestDates:
    def test_start_of_day(self):
        noon = datetime(2026, 10, 18, 12, 30)
        assert start_of_day(noon) == to_epoch_ms(datetime(2026, 10, 18))
        assert start_of_day(date(2026, 10, 18)) == to_epoch_ms(datetime(2026, 10, 18))
        assert start_of_day("2026-10-18") == to_epoch_ms(datetime(2026, 10, 18))

    def test_parse_date_invalid(self):
        with pytest.raises(ValidationError, match="YYYY-MM-DD"):
            parse_date("18/10/2026")

    def test_format_date(self):
        assert format_date(to_epoch_ms(date(2026, 10, 8))) == "Oct 8, 2026"
        assert format_date(None) == "N/A"

    def test_tomorrow(self):
        now = to_epoch_ms(datetime(2026, 12, 31, 23, 0))
        assert tomorrow(now) == to_epoch_ms(date(2027, 1, 1))

    def test_bool_is_not_a_date(self):
        with pytest.raises(ValidationError):
            to_epoch_ms(True)
