"""Read models for the board and the archive.

Pure functions: they never mutate tasks and never fail on odd data.
Unknown statuses fall into "Opened", missing due dates sort last and a
missing eta counts as zero.
"""
from __future__ import annotations
from dataclasses import dataclass, field
import logging
from typing import Dict, Iterable, List, Optional, Sequence

from dates import DateLike, optional_start_of_day
from models import ACTIVE_STATUSES, ARCHIVED, OPENED, Task

SORT_DUE_DATE = 'dueDate'
SORT_ETA = 'eta'
SORT_KEYS = (SORT_DUE_DATE, SORT_ETA)

logger = logging.getLogger(__name__)


@dataclass
class BoardView:
    groups: Dict[str, List[Task]] = field(default_factory=lambda: {s: [] for s in ACTIVE_STATUSES})
    points: Dict[str, int] = field(default_factory=lambda: {s: 0 for s in ACTIVE_STATUSES})

    @property
    def total_tasks(self) -> int:
        return sum(len(g) for g in self.groups.values())


def matches_search(task: Task, query: str) -> bool:
    needle = (query or '').strip().lower()
    if not needle:
        return True
    return needle in (task.title or '').lower() or needle in (task.description or '').lower()


def sort_tasks(tasks: Iterable[Task], sort_by: str = SORT_DUE_DATE) -> List[Task]:
    """Due date ascending (missing last) or eta descending (missing as 0)."""
    if sort_by == SORT_DUE_DATE:
        return sorted(tasks, key=lambda t: (t.due_date is None, t.due_date or 0))
    if sort_by == SORT_ETA:
        return sorted(tasks, key=lambda t: -(t.eta or 0))
    logger.warning("Unknown sort key %r, leaving order unchanged", sort_by)
    return list(tasks)


def point_summary(groups: Dict[str, Sequence[Task]]) -> Dict[str, int]:
    """Sum of eta per active status over what is currently visible."""
    return {s: sum(t.eta or 0 for t in groups.get(s, ())) for s in ACTIVE_STATUSES}


def group_board(
    tasks: Iterable[Task],
    search: str = '',
    due_by: Optional[DateLike] = None,
    sort_by: str = SORT_DUE_DATE,
) -> BoardView:
    """Filter non-archived tasks, bucket them by status and sort each bucket."""
    ceiling = optional_start_of_day(due_by)
    groups: Dict[str, List[Task]] = {s: [] for s in ACTIVE_STATUSES}
    for task in tasks:
        if task.status == ARCHIVED:
            continue
        if not matches_search(task, search):
            continue
        if ceiling is not None and (task.due_date is None or task.due_date > ceiling):
            continue
        bucket = task.status if task.status in groups else OPENED
        groups[bucket].append(task)
    for status in ACTIVE_STATUSES:
        groups[status] = sort_tasks(groups[status], sort_by)
    return BoardView(groups=groups, points=point_summary(groups))


def filter_archived(
    tasks: Iterable[Task],
    search: str = '',
    completed_after: Optional[DateLike] = None,
    sort_by: str = SORT_DUE_DATE,
) -> List[Task]:
    floor = optional_start_of_day(completed_after)
    kept = []
    for task in tasks:
        if task.status != ARCHIVED or not matches_search(task, search):
            continue
        if floor is not None and (task.completed_date is None or task.completed_date < floor):
            continue
        kept.append(task)
    return sort_tasks(kept, sort_by)
