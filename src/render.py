"""Terminal rendering for the board, the archive and single tasks.

Renderers return lists of lines; the REPL decides when to print them.
Column headers read "OPENED", "IN PROGRESS", "COMPLETED" with the visible
point total of each column.
"""
import re
import shutil
from typing import Dict, List, Mapping, Optional, Sequence

from dates import format_date
from models import ACTIVE_STATUSES, COMPLETED, Task
from theme import BOLD, Theme, build_theme, color
from views import BoardView

SHORT_ID_LEN = 6
MIN_COL_WIDTH = 18
SEP = " | "
ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def short_id(task_id: str) -> str:
    return task_id[:SHORT_ID_LEN]


def visible_len(s: str) -> int:
    return len(ANSI_RE.sub('', s))


def header_title(status: str, points: int) -> str:
    return f"{status.upper()} ({points} pts)"


class BoardRenderer:
    def __init__(self, theme: Optional[Theme] = None, width: Optional[int] = None):
        self.theme = theme or build_theme()
        self._width = width

    @property
    def width(self) -> int:
        if self._width:
            return self._width
        return shutil.get_terminal_size((120, 30)).columns

    # -------------------- board --------------------
    def board_lines(self, view: BoardView) -> List[str]:
        headers = {s: header_title(s, view.points.get(s, 0)) for s in ACTIVE_STATUSES}
        widths = self._compute_column_widths(view, headers)
        wrapped = self._wrap_all_columns(view, widths)
        return self._render(widths, wrapped, headers)

    # ---- width calculation ----
    def _compute_column_widths(self, view: BoardView, headers: Mapping[str, str]) -> Dict[str, int]:
        sep_total = len(SEP) * (len(ACTIVE_STATUSES) - 1)
        widths: Dict[str, int] = {}
        for status in ACTIVE_STATUSES:
            longest = len(headers[status])
            for t in view.groups.get(status, []):
                prefix, title, meta = self._task_segments(t)
                longest = max(longest, len(prefix) + len(title) + len(meta))
            widths[status] = max(MIN_COL_WIDTH, longest)
        term_width = self.width
        total = sum(widths.values()) + sep_total
        if total > term_width:
            target_space = max(term_width - sep_total, len(ACTIVE_STATUSES) * MIN_COL_WIDTH)
            while sum(widths.values()) > target_space:
                widest = max(ACTIVE_STATUSES, key=lambda s: widths[s])
                if widths[widest] <= MIN_COL_WIDTH:
                    break
                widths[widest] -= 1
        else:
            extra = term_width - total
            i = 0
            while extra > 0:
                widths[ACTIVE_STATUSES[i % len(ACTIVE_STATUSES)]] += 1
                extra -= 1
                i += 1
        return widths

    # ---- wrapping ----
    def _wrap_all_columns(self, view: BoardView, widths: Mapping[str, int]) -> Dict[str, List[str]]:
        wrapped: Dict[str, List[str]] = {}
        for status in ACTIVE_STATUSES:
            tasks = view.groups.get(status, [])
            if not tasks:
                wrapped[status] = [color('(empty)', self.theme.empty)]
                continue
            acc: List[str] = []
            for t in tasks:
                acc.extend(self._wrap_task(t, status, widths[status]))
            wrapped[status] = acc
        return wrapped

    def _task_segments(self, task: Task):
        prefix = f"{short_id(task.id)} "
        title = task.title or '<untitled>'
        meta = f" [{task.eta}]"
        if task.subtasks:
            meta += f" ({task.subtasks_completed}/{len(task.subtasks)})"
        if task.status == COMPLETED and task.completed_date:
            meta += f" (✓ {format_date(task.completed_date)})"
        return prefix, title, meta

    def _wrap_task(self, task: Task, status: str, col_width: int) -> List[str]:
        prefix, title, meta = self._task_segments(task)
        limit = max(1, col_width - len(prefix))
        lines_raw: List[str] = []
        current = ''
        for w in (title + meta).split():
            candidate = w if not current else current + ' ' + w
            if len(candidate) <= limit or not current:
                current = candidate
            else:
                lines_raw.append(current)
                current = w
        if current:
            lines_raw.append(current)
        status_col = self.theme.status.get(status, '')
        out: List[str] = []
        for idx, raw_line in enumerate(lines_raw):
            lead = color(prefix.strip(), self.theme.task_id) + ' ' if idx == 0 else ' ' * len(prefix)
            out.append(lead + color(raw_line, status_col))
        return out

    # ---- rendering ----
    def _render(self, widths: Mapping[str, int], wrapped: Mapping[str, List[str]],
                headers: Mapping[str, str]) -> List[str]:
        lines: List[str] = []
        header_cells = [self._pad(color(headers[s], self.theme.header, BOLD), widths[s]) for s in ACTIVE_STATUSES]
        lines.append(SEP.join(header_cells))
        lines.append(SEP.join(color('-' * widths[s], self.theme.header) for s in ACTIVE_STATUSES))
        rows = max(len(wrapped[s]) for s in ACTIVE_STATUSES)
        for r in range(rows):
            cells = []
            for s in ACTIVE_STATUSES:
                col_lines = wrapped[s]
                cells.append(self._pad(col_lines[r], widths[s]) if r < len(col_lines) else ' ' * widths[s])
            lines.append(SEP.join(cells).rstrip())
        return lines

    @staticmethod
    def _pad(text: str, width: int) -> str:
        pad = width - visible_len(text)
        return text + ' ' * pad if pad > 0 else text

    # -------------------- archive & details --------------------
    def archived_lines(self, tasks: Sequence[Task], total: int) -> List[str]:
        lines = [color(f"Archived tasks: showing {len(tasks)} of {total}", self.theme.header, BOLD)]
        if not tasks:
            lines.append(color('No tasks match the current filter criteria.', self.theme.empty))
            return lines
        for t in tasks:
            progress = f", subtasks {t.subtasks_completed}/{len(t.subtasks)}" if t.subtasks else ''
            lines.append(
                f"{color(short_id(t.id), self.theme.task_id)} {t.title} "
                f"[{t.eta} pts{progress}] completed {format_date(t.completed_date)}, "
                f"archived {format_date(t.archived_at)}"
            )
        return lines

    def task_detail_lines(self, task: Task) -> List[str]:
        lines = [
            color(f"{task.title}", self.theme.header, BOLD) + f"  ({task.id})",
            f"Status: {task.status}",
            f"Description: {task.description}",
            f"Points: {task.eta} (subtasks {task.subtask_points}, remaining {task.remaining_points})",
            f"Due: {format_date(task.due_date)}",
            f"Created: {format_date(task.created_at)}",
        ]
        if task.completed_date:
            lines.append(f"Completed: {format_date(task.completed_date)}")
        if task.archived_at:
            lines.append(f"Archived: {format_date(task.archived_at)}")
        if task.subtasks:
            lines.append(f"Subtasks ({task.subtasks_completed}/{len(task.subtasks)} done):")
            for n, sub in enumerate(task.subtasks, start=1):
                mark = 'x' if sub.completed else ' '
                lines.append(f"  {n}. [{mark}] {sub.title} ({sub.eta} Pts, Due: {format_date(sub.due_date)})")
        return lines

    def error(self, message: str) -> str:
        return color(message, self.theme.error)
