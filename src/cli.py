"""Interactive command loop for the task board.

The loop only talks to TaskStore operations; the store persists itself
after every change, so there is no explicit save step here.
"""
import logging
from typing import Callable, List, Optional

import storage
from board import TaskStore
from dates import format_date, iso_day, parse_date, start_of_day, tomorrow
from errors import KanbanError, NotFoundError, ValidationError
from models import COMPLETED, IN_PROGRESS, OPENED, Task
from render import BoardRenderer
from theme import build_theme
from views import SORT_DUE_DATE, SORT_ETA

logger = logging.getLogger(__name__)

# --- terminal control helpers ---
# ESC[3J (scrollback), ESC[H (home), ESC[2J (screen), ESC[H (home); 3J first for reliability.
def _clear_screen() -> None:
    print("\033[3J\033[H\033[2J\033[H", end="", flush=True)


def _enter_alt_screen() -> None:
    print("\033[?1049h", end="", flush=True)


def _leave_alt_screen() -> None:
    print("\033[?1049l", end="", flush=True)


STATUS_ALIASES = {
    'o': OPENED,
    'open': OPENED,
    'opened': OPENED,
    'ip': IN_PROGRESS,
    'in-progress': IN_PROGRESS,
    'progress': IN_PROGRESS,
    'c': COMPLETED,
    'done': COMPLETED,
    'completed': COMPLETED,
}

SORT_ALIASES = {'due': SORT_DUE_DATE, 'duedate': SORT_DUE_DATE, 'eta': SORT_ETA, 'points': SORT_ETA}


def archive_message(count: int) -> str:
    if count > 0:
        return f"Successfully archived {count} completed tasks from the last week!"
    return "No tasks completed in the last week to archive."


class CLI:
    def __init__(
        self,
        store: TaskStore,
        renderer: Optional[BoardRenderer] = None,
        alt_screen: bool = True,
        archive_days: int = 7,
        input_fn: Callable[[str], str] = input,
        colors: Optional[dict] = None,
    ):
        self.store = store
        self.colors = dict(colors or {})
        self.renderer = renderer or BoardRenderer(build_theme(storage.load_theme(store.kv), self.colors))
        self.alt_screen = alt_screen
        self.archive_days = archive_days
        self._input = input_fn
        # board / archive filters
        self.search = ''
        self.due_by: Optional[int] = None
        self.completed_after: Optional[int] = None
        self.sort_by = SORT_DUE_DATE
        self.message: Optional[str] = None

    def run(self) -> None:
        """Main REPL loop; the board is cleared and redrawn each cycle."""
        exit_message: Optional[str] = None
        if self.alt_screen:
            _enter_alt_screen()
        try:
            while True:
                _clear_screen()
                self.show_board()
                if self.message:
                    print('\n' + self.message)
                    self.message = None
                line = self._input("\n: ").strip()
                if not line:
                    continue
                lower = line.lower()
                if lower == 'help':
                    _clear_screen()
                    self._help()
                    self._input("\nPress Enter to return to the board...")
                    continue
                if lower in ('exit', 'quit'):
                    exit_message = "Goodbye."
                    break
                self.handle_command(line)
        except (KeyboardInterrupt, EOFError):
            exit_message = "Interrupted. Goodbye."
        finally:
            if self.alt_screen:
                _leave_alt_screen()
            if exit_message:
                print(exit_message)

    def show_board(self) -> None:
        print(f"Task Board ({self._filter_summary()}):")
        for line in self.renderer.board_lines(self.store.board(self.search, self.due_by, self.sort_by)):
            print(line)

    def _filter_summary(self) -> str:
        parts = [f"sort: {'due date' if self.sort_by == SORT_DUE_DATE else 'points'}"]
        if self.search:
            parts.append(f"search: {self.search!r}")
        if self.due_by is not None:
            parts.append(f"due by: {format_date(self.due_by)}")
        candidates = self.store.archive_candidates(self.store.archive_window_start(self.archive_days))
        parts.append(f"archivable: {candidates}")
        parts.append(f"archived: {self.store.archived_count()}")
        return ', '.join(parts)

    # -------------------- command dispatch --------------------
    def handle_command(self, line: str) -> None:
        tokens = line.split()
        if not tokens:
            return
        cmd = tokens[0].lower()
        handler = self.COMMANDS.get(cmd)
        if handler is None:
            self.message = "Unknown command. Type 'help' for instructions."
            return
        try:
            handler(self, tokens)
        except KanbanError as e:
            logger.debug("Command %r rejected: %s", line, e)
            self.message = self.renderer.error(str(e))

    def _task_arg(self, tokens: List[str], usage: str) -> str:
        if len(tokens) < 2:
            raise ValidationError(f"Usage: {usage}")
        return self.store.resolve_id(tokens[1].rstrip('.'))

    def _subtask_arg(self, task: Task, raw: str) -> str:
        if not raw.isdigit() or not 1 <= int(raw) <= len(task.subtasks):
            raise NotFoundError(f"No subtask #{raw} on task {task.title!r}.", raw)
        return task.subtasks[int(raw) - 1].id

    # ---- individual command helpers ----
    def _cmd_add(self, tokens: List[str]) -> None:
        title = ' '.join(tokens[1:]).strip() or self._input("Title: ").strip()
        if not title:
            raise ValidationError("Title is required.")
        description = self._input("Description: ").strip()
        eta = self._input("Points ETA [1]: ").strip() or 1
        default_due = iso_day(tomorrow(self.store.now()))
        due = self._input(f"Due date [{default_due}]: ").strip() or default_due
        task = self.store.create(title=title, description=description, eta=eta, due_date=parse_date(due))
        self.message = f'Task "{task.title}" added.'

    def _cmd_edit(self, tokens: List[str]) -> None:
        tid = self._task_arg(tokens, "edit <id>")
        task = self.store.get(tid)
        title = self._input(f"Title [{task.title}]: ").strip() or task.title
        description = self._input(f"Description [{task.description}]: ").strip() or task.description
        eta = self._input(f"Points ETA [{task.eta}]: ").strip() or task.eta
        due = self._input(f"Due date [{iso_day(task.due_date)}]: ").strip()
        patch = dict(title=title, description=description, eta=eta)
        if due:
            patch['due_date'] = parse_date(due)
        self.store.update(tid, **patch)
        self.message = f'Task "{title}" updated.'

    def _cmd_mv(self, tokens: List[str]) -> None:
        if len(tokens) != 3:
            raise ValidationError("Usage: mv <id> <status>; statuses: o/ip/c")
        new_status = STATUS_ALIASES.get(tokens[2].lower())
        if not new_status:
            raise ValidationError("Invalid status. Use o (opened), ip (in progress) or c (completed).")
        self.store.change_status(self._task_arg(tokens, "mv <id> <status>"), new_status)

    def _cmd_rm(self, tokens: List[str]) -> None:
        tid = self._task_arg(tokens, "rm <id>")
        title = self.store.get(tid).title
        self.store.delete(tid)
        self.message = f'Task "{title}" removed.'

    def _cmd_sub(self, tokens: List[str]) -> None:
        if len(tokens) < 4:
            raise ValidationError("Usage: sub <id> <points> <title...> [due:YYYY-MM-DD]")
        tid = self._task_arg(tokens, "sub <id> <points> <title...>")
        words = tokens[3:]
        due = None
        if words and words[-1].startswith('due:'):
            due = parse_date(words.pop()[4:])
        self.store.add_subtask(tid, ' '.join(words), eta=tokens[2], due_date=due)

    def _cmd_unsub(self, tokens: List[str]) -> None:
        if len(tokens) != 3:
            raise ValidationError("Usage: unsub <id> <n>")
        task = self.store.get(self._task_arg(tokens, "unsub <id> <n>"))
        self.store.remove_subtask(task.id, self._subtask_arg(task, tokens[2]))

    def _cmd_tick(self, tokens: List[str]) -> None:
        if len(tokens) != 3:
            raise ValidationError("Usage: tick <id> <n>")
        task = self.store.get(self._task_arg(tokens, "tick <id> <n>"))
        self.store.toggle_subtask(task.id, self._subtask_arg(task, tokens[2]))

    def _cmd_show(self, tokens: List[str]) -> None:
        task = self.store.get(self._task_arg(tokens, "show <id>"))
        self.message = '\n'.join(self.renderer.task_detail_lines(task))

    def _cmd_archive(self, tokens: List[str]) -> None:
        result = self.store.archive_completed(self.store.archive_window_start(self.archive_days))
        self.message = archive_message(result.archived_count)

    def _cmd_archived(self, tokens: List[str]) -> None:
        tasks = self.store.archived_list(self.search, self.completed_after, self.sort_by)
        self.message = '\n'.join(self.renderer.archived_lines(tasks, self.store.archived_count()))

    def _cmd_find(self, tokens: List[str]) -> None:
        self.search = ' '.join(tokens[1:]).strip()

    def _cmd_due(self, tokens: List[str]) -> None:
        self.due_by = self._date_filter(tokens, "due <YYYY-MM-DD|off>")

    def _cmd_after(self, tokens: List[str]) -> None:
        self.completed_after = self._date_filter(tokens, "after <YYYY-MM-DD|off>")

    def _date_filter(self, tokens: List[str], usage: str) -> Optional[int]:
        if len(tokens) != 2:
            raise ValidationError(f"Usage: {usage}")
        if tokens[1].lower() in ('off', 'none', 'clear'):
            return None
        return start_of_day(parse_date(tokens[1]))

    def _cmd_sort(self, tokens: List[str]) -> None:
        key = SORT_ALIASES.get(tokens[1].lower()) if len(tokens) == 2 else None
        if not key:
            raise ValidationError("Usage: sort <due|eta>")
        self.sort_by = key

    def _cmd_theme(self, tokens: List[str]) -> None:
        current = storage.load_theme(self.store.kv)
        if len(tokens) == 1:
            mode = storage.LIGHT if current == storage.DARK else storage.DARK
        else:
            mode = tokens[1].lower()
        storage.save_theme(self.store.kv, mode)
        self.renderer.theme = build_theme(mode, self.colors)
        self.message = f"Theme set to {mode}."

    COMMANDS = {
        'add': _cmd_add,
        'edit': _cmd_edit,
        'mv': _cmd_mv,
        'move': _cmd_mv,
        'rm': _cmd_rm,
        'remove': _cmd_rm,
        'sub': _cmd_sub,
        'unsub': _cmd_unsub,
        'tick': _cmd_tick,
        'show': _cmd_show,
        'archive': _cmd_archive,
        'archived': _cmd_archived,
        'find': _cmd_find,
        'due': _cmd_due,
        'after': _cmd_after,
        'sort': _cmd_sort,
        'theme': _cmd_theme,
    }

    # -------------------- help --------------------
    def _help(self) -> None:
        print("Commands:")
        print("  add [title...]            Add a task (prompts for description, points, due date)")
        print("  edit <id>                 Edit title/description/points/due date (Enter keeps value)")
        print("  mv <id> <status>          Move; status aliases: o (opened), ip (in progress), c (completed)")
        print("  rm <id>                   Delete a task (active or archived)")
        print("  sub <id> <pts> <title...> Add a subtask; optional trailing due:YYYY-MM-DD")
        print("  unsub <id> <n>            Remove subtask #n")
        print("  tick <id> <n>             Toggle subtask #n complete/incomplete")
        print("  show <id>                 Show task details and subtasks")
        print(f"  archive                   Archive tasks completed in the last {self.archive_days} days")
        print("  archived                  List archived tasks (uses find/after/sort)")
        print("  find [text]               Filter by title/description; 'find' alone clears")
        print("  due <date|off>            Only show tasks due on/before date")
        print("  after <date|off>          Archive list: completed on/after date")
        print("  sort <due|eta>            Sort by due date or by points")
        print("  theme [dark|light]        Switch color theme (no argument toggles)")
        print("  help                      Show this help (press Enter to return)")
        print("  exit                      Exit")
        print("Ids may be shortened to any unique prefix.")
