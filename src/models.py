"""Data models for the task board.

Statuses are stored as their display strings ("Opened", "In Progress",
"Completed", "Archived") so the persisted JSON stays readable and keeps
the same shape as earlier saved boards. All dates are epoch milliseconds.
"""
from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

OPENED = 'Opened'
IN_PROGRESS = 'In Progress'
COMPLETED = 'Completed'
ARCHIVED = 'Archived'

ACTIVE_STATUSES: Tuple[str, ...] = (OPENED, IN_PROGRESS, COMPLETED)
STATUSES: Tuple[str, ...] = ACTIVE_STATUSES + (ARCHIVED,)


def _opt_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


@dataclass
class Subtask:
    """A checklist item under a task.

    Fields:
        id: Opaque id, unique within the parent task.
        title: Non-empty text.
        completed: Toggled independently of the parent status.
        eta: Point cost (>= 0), counted against the parent's budget.
        due_date: Start-of-day epoch ms, or None.
    """
    id: str
    title: str
    completed: bool = False
    eta: int = 0
    due_date: Optional[int] = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> 'Subtask':
        return cls(
            id=str(raw['id']),
            title=str(raw.get('title') or ''),
            completed=bool(raw.get('completed', False)),
            eta=_opt_int(raw.get('eta')) or 0,
            due_date=_opt_int(raw.get('dueDate')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'completed': self.completed,
            'eta': self.eta,
            'dueDate': self.due_date,
        }


@dataclass
class Task:
    """A single card on the board.

    Fields:
        id: Opaque id assigned at creation.
        title, description: Trimmed, non-empty text.
        status: One of STATUSES ("Opened" on creation).
        eta: Point budget (>= 1); subtask points may not exceed it.
        due_date: Start-of-day epoch ms.
        completed_date: Set only while status is "Completed" (kept once archived).
        archived_at: Set when bulk-archived.
        created_at: Creation time, never changed.
        subtasks: Ordered checklist.
    """
    id: str
    title: str
    description: str
    status: str = OPENED
    eta: int = 1
    due_date: Optional[int] = None
    completed_date: Optional[int] = None
    archived_at: Optional[int] = None
    created_at: int = 0
    subtasks: List[Subtask] = field(default_factory=list)

    @property
    def is_archived(self) -> bool:
        return self.status == ARCHIVED

    @property
    def subtasks_completed(self) -> int:
        return sum(1 for s in self.subtasks if s.completed)

    @property
    def subtask_points(self) -> int:
        return sum(s.eta or 0 for s in self.subtasks)

    @property
    def remaining_points(self) -> int:
        return max(0, (self.eta or 0) - self.subtask_points)

    def find_subtask(self, subtask_id: str) -> Optional[Subtask]:
        for sub in self.subtasks:
            if sub.id == subtask_id:
                return sub
        return None

    def copy(self) -> 'Task':
        """Copy with its own subtask list, so callers cannot mutate store state."""
        return replace(self, subtasks=[replace(s) for s in self.subtasks])

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> 'Task':
        raw_subtasks = raw.get('subtasks')
        if not isinstance(raw_subtasks, list):
            raw_subtasks = []
        subtasks = [
            Subtask.from_dict(s) for s in raw_subtasks
            if isinstance(s, Mapping) and s.get('id') is not None
        ]
        return cls(
            id=str(raw['id']),
            title=str(raw.get('title') or ''),
            description=str(raw.get('description') or ''),
            status=str(raw.get('status') or OPENED),
            eta=max(1, _opt_int(raw.get('eta')) or 1),
            due_date=_opt_int(raw.get('dueDate')),
            completed_date=_opt_int(raw.get('completedDate')),
            archived_at=_opt_int(raw.get('archivedAt')),
            created_at=_opt_int(raw.get('createdAt')) or 0,
            subtasks=subtasks,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'status': self.status,
            'eta': self.eta,
            'dueDate': self.due_date,
            'completedDate': self.completed_date,
            'createdAt': self.created_at,
            'subtasks': [s.to_dict() for s in self.subtasks],
        }
        if self.archived_at is not None:
            data['archivedAt'] = self.archived_at
        return data

    def __repr__(self) -> str:  # pragma: no cover - convenience only
        return f"Task(id={self.id}, title={self.title}, status={self.status})"
