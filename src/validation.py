"""Input validation for task and subtask fields.

Every check raises ValidationError with a message fit for display; callers
validate before touching stored state so a rejected edit changes nothing.
"""
from __future__ import annotations
from typing import Any, Iterable, List, Mapping, Optional, Union

from dates import optional_start_of_day, start_of_day
from errors import ValidationError
from models import ACTIVE_STATUSES, Subtask

SubtaskInput = Union[Subtask, Mapping[str, Any]]


def require_text(value: Any, field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} is required.")
    return str(value).strip()


def coerce_points(value: Any, field_name: str, minimum: int) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a whole number.")
    try:
        points = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a whole number.")
    if isinstance(value, float) and value != points:
        raise ValidationError(f"{field_name} must be a whole number.")
    if points < minimum:
        raise ValidationError(f"{field_name} must be at least {minimum}.")
    return points


def require_due_date(value: Any) -> int:
    if value is None or value == '':
        raise ValidationError("Due date is required.")
    return start_of_day(value)


def validate_status(status: Any) -> str:
    """Only the three active statuses may be set directly."""
    if status not in ACTIVE_STATUSES:
        allowed = ', '.join(ACTIVE_STATUSES)
        raise ValidationError(f"Invalid status: {status!r}. Expected one of: {allowed}")
    return status


def check_point_budget(eta: int, subtasks: Iterable[Subtask]) -> None:
    """Subtask points may never exceed the main task's ETA."""
    total = sum(s.eta for s in subtasks)
    if total > eta:
        raise ValidationError(
            f"Total subtask points ({total}) cannot exceed the main task's ETA ({eta})."
        )


def build_subtasks(items: Iterable[SubtaskInput], new_id) -> List[Subtask]:
    """Validate subtask input and return fresh Subtask records.

    Items may be Subtask instances or mappings with title/eta/dueDate/completed
    (and optionally id). Items without an id get one from ``new_id``.
    """
    result: List[Subtask] = []
    seen = set()
    for item in items:
        if isinstance(item, Subtask):
            raw = item.to_dict()
        else:
            raw = dict(item)
        sid: Optional[Any] = raw.get('id')
        sid = str(sid) if sid else new_id()
        if sid in seen:
            raise ValidationError(f"Duplicate subtask id: {sid}")
        seen.add(sid)
        due = raw.get('dueDate', raw.get('due_date'))
        result.append(Subtask(
            id=sid,
            title=require_text(raw.get('title'), 'Subtask title'),
            completed=bool(raw.get('completed', False)),
            eta=coerce_points(raw.get('eta', 0) or 0, 'Subtask points', 0),
            due_date=optional_start_of_day(due),
        ))
    return result
