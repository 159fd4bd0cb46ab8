"""Board logic: owns the task collection, enforces its rules, persists it.

TaskStore is the only writer. Every operation validates first and mutates
second, so a rejected call leaves the collection untouched. After each
successful mutation the whole collection is written to the key-value store;
a failed write is logged and reported as a PersistenceWarning but never
undoes the in-memory change.
"""
import logging
import uuid
import warnings
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterable, List, Optional

import storage
from dates import DateLike, days_before, now_ms, to_epoch_ms
from errors import NotFoundError, PersistenceWarning, StorageError, ValidationError
from models import ARCHIVED, COMPLETED, OPENED, Subtask, Task
from validation import (
    SubtaskInput,
    build_subtasks,
    check_point_budget,
    coerce_points,
    require_due_date,
    require_text,
    validate_status,
)
from views import SORT_DUE_DATE, BoardView, filter_archived, group_board, point_summary

logger = logging.getLogger(__name__)

DEFAULT_ARCHIVE_DAYS = 7
_PATCH_FIELDS = {'title', 'description', 'eta', 'due_date', 'subtasks'}


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class ArchiveResult:
    archived_count: int


class TaskStore:
    def __init__(
        self,
        kv: Any,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = _new_id,
    ):
        self.kv = kv
        self._clock = clock
        self._new_id = id_factory
        self._tasks: List[Task] = []

    # -------------------- lifecycle --------------------
    def load(self) -> 'TaskStore':
        """Replace in-memory state with the stored snapshot.

        An absent or unreadable snapshot leaves the store empty.
        """
        try:
            self._tasks = storage.load_tasks(self.kv)
        except StorageError as e:
            self._tasks = []
            self._warn(f"Could not load tasks, starting empty: {e}")
        logger.debug("Loaded %d tasks", len(self._tasks))
        return self

    def save(self) -> bool:
        try:
            storage.save_tasks(self.kv, self._tasks)
        except StorageError as e:
            self._warn(f"Could not save tasks: {e}")
            return False
        return True

    def _warn(self, message: str) -> None:
        logger.warning(message)
        warnings.warn(message, PersistenceWarning, stacklevel=3)

    # -------------------- queries --------------------
    @property
    def tasks(self) -> List[Task]:
        return [t.copy() for t in self._tasks]

    def now(self) -> int:
        return self._clock()

    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, task_id: str) -> Task:
        return self._find(task_id).copy()

    def _find(self, task_id: str) -> Task:
        for task in self._tasks:
            if task.id == task_id:
                return task
        raise NotFoundError(f"Task {task_id} not found.", task_id)

    def _index(self, task_id: str) -> int:
        for i, task in enumerate(self._tasks):
            if task.id == task_id:
                return i
        raise NotFoundError(f"Task {task_id} not found.", task_id)

    def resolve_id(self, prefix: str) -> str:
        """Expand a (possibly shortened) id to the single matching task id."""
        prefix = (prefix or '').strip().lower()
        if not prefix:
            raise NotFoundError("Task id required.", prefix)
        exact = [t.id for t in self._tasks if t.id.lower() == prefix]
        if exact:
            return exact[0]
        matches = [t.id for t in self._tasks if t.id.lower().startswith(prefix)]
        if len(matches) == 1:
            return matches[0]
        if not matches:
            raise NotFoundError(f"Task {prefix} not found.", prefix)
        raise NotFoundError(f"Task id {prefix} is ambiguous ({len(matches)} matches).", prefix)

    # -------------------- task operations --------------------
    def create(
        self,
        title: str,
        description: str,
        due_date: DateLike,
        eta: Any = 1,
        subtasks: Iterable[SubtaskInput] = (),
    ) -> Task:
        points = coerce_points(1 if eta is None else eta, 'ETA', 1)
        new_subtasks = build_subtasks(subtasks, self._new_id)
        check_point_budget(points, new_subtasks)
        task = Task(
            id=self._unique_task_id(),
            title=require_text(title, 'Title'),
            description=require_text(description, 'Description'),
            status=OPENED,
            eta=points,
            due_date=require_due_date(due_date),
            completed_date=None,
            created_at=self._clock(),
            subtasks=new_subtasks,
        )
        self._tasks.append(task)
        logger.info("Created task %s (%s)", task.id, task.title)
        self.save()
        return task.copy()

    def _unique_task_id(self) -> str:
        existing = {t.id for t in self._tasks}
        tid = self._new_id()
        while tid in existing:
            tid = self._new_id()
        return tid

    def update(self, task_id: str, **patch: Any) -> Task:
        """Edit content fields; lifecycle fields (status and dates) are kept."""
        unknown = set(patch) - _PATCH_FIELDS
        if unknown:
            raise ValidationError(f"Cannot edit field(s): {', '.join(sorted(unknown))}")
        idx = self._index(task_id)
        current = self._tasks[idx]
        changes: Dict[str, Any] = {}
        if 'title' in patch:
            changes['title'] = require_text(patch['title'], 'Title')
        if 'description' in patch:
            changes['description'] = require_text(patch['description'], 'Description')
        if 'eta' in patch:
            changes['eta'] = coerce_points(patch['eta'], 'ETA', 1)
        if 'due_date' in patch:
            changes['due_date'] = require_due_date(patch['due_date'])
        if 'subtasks' in patch:
            changes['subtasks'] = build_subtasks(patch['subtasks'] or (), self._new_id)
        else:
            changes['subtasks'] = [replace(s) for s in current.subtasks]
        check_point_budget(changes.get('eta', current.eta), changes['subtasks'])
        updated = replace(current, **changes)
        self._tasks[idx] = updated
        logger.info("Updated task %s", task_id)
        self.save()
        return updated.copy()

    def delete(self, task_id: str) -> None:
        idx = self._index(task_id)
        removed = self._tasks.pop(idx)
        logger.info("Deleted task %s (%s)", removed.id, removed.status)
        self.save()

    def change_status(self, task_id: str, new_status: str) -> Task:
        """Move a task to any active status.

        Non-adjacent jumps (e.g. Opened -> Completed) are allowed. Entering
        Completed stamps completed_date; leaving it clears the stamp.
        """
        validate_status(new_status)
        task = self._find(task_id)
        if task.status == ARCHIVED:
            raise ValidationError(f"Task {task_id} is archived and cannot change status.")
        task.status = new_status
        if new_status == COMPLETED:
            task.completed_date = self._clock()
        else:
            task.completed_date = None
        logger.info("Task %s moved to %s", task_id, new_status)
        self.save()
        return task.copy()

    # -------------------- subtasks --------------------
    def toggle_subtask(self, task_id: str, subtask_id: str) -> Task:
        task = self._find(task_id)
        sub = task.find_subtask(subtask_id)
        if sub is None:
            raise NotFoundError(f"Subtask {subtask_id} not found in task {task_id}.", subtask_id)
        sub.completed = not sub.completed
        self.save()
        return task.copy()

    def add_subtask(
        self,
        task_id: str,
        title: str,
        eta: Any = 0,
        due_date: Optional[DateLike] = None,
    ) -> Task:
        task = self._find(task_id)
        items: List[SubtaskInput] = list(task.subtasks)
        items.append({'title': title, 'eta': eta, 'dueDate': due_date})
        return self.update(task_id, subtasks=items)

    def remove_subtask(self, task_id: str, subtask_id: str) -> Task:
        task = self._find(task_id)
        if task.find_subtask(subtask_id) is None:
            raise NotFoundError(f"Subtask {subtask_id} not found in task {task_id}.", subtask_id)
        remaining: List[Subtask] = [s for s in task.subtasks if s.id != subtask_id]
        return self.update(task_id, subtasks=remaining)

    # -------------------- archiving --------------------
    def archive_window_start(self, days: int = DEFAULT_ARCHIVE_DAYS) -> int:
        return days_before(self._clock(), days)

    def _archivable(self, window_start: int) -> List[Task]:
        return [
            t for t in self._tasks
            if t.status == COMPLETED and t.completed_date is not None
            and t.completed_date >= window_start
        ]

    def archive_candidates(self, window_start: DateLike) -> int:
        return len(self._archivable(to_epoch_ms(window_start)))

    def archive_completed(self, window_start: DateLike) -> ArchiveResult:
        """Archive every task completed at or after ``window_start``."""
        candidates = self._archivable(to_epoch_ms(window_start))
        stamp = self._clock()
        for task in candidates:
            task.status = ARCHIVED
            task.archived_at = stamp
        if candidates:
            logger.info("Archived %d completed tasks", len(candidates))
            self.save()
        return ArchiveResult(archived_count=len(candidates))

    # -------------------- derived views --------------------
    def board(
        self,
        search: str = '',
        due_by: Optional[DateLike] = None,
        sort_by: str = SORT_DUE_DATE,
    ) -> BoardView:
        return group_board(self.tasks, search=search, due_by=due_by, sort_by=sort_by)

    def archived_list(
        self,
        search: str = '',
        completed_after: Optional[DateLike] = None,
        sort_by: str = SORT_DUE_DATE,
    ) -> List[Task]:
        return filter_archived(self.tasks, search=search, completed_after=completed_after, sort_by=sort_by)

    def archived_count(self) -> int:
        return sum(1 for t in self._tasks if t.status == ARCHIVED)

    @staticmethod
    def point_summary(view: BoardView) -> Dict[str, int]:
        return point_summary(view.groups)

    def __str__(self) -> str:
        view = self.board()
        return ', '.join(f'{s}: {len(g)} tasks' for s, g in view.groups.items()) \
            + f', Archived: {self.archived_count()} tasks'
