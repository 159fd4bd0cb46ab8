"""Main entry point for the terminal task board.

Without a subcommand the interactive board starts; the subcommands cover
one-shot use from scripts.
"""
import logging
from pathlib import Path
from typing import Optional

import click

import storage
from board import TaskStore
from cli import CLI, archive_message
from config import load_settings
from dates import parse_date, tomorrow
from errors import KanbanError
from logging_setup import setup_logging
from render import BoardRenderer, short_id
from theme import build_theme
from views import SORT_KEYS

logger = logging.getLogger(__name__)

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR']


def _date_option(ctx, param, value):
    if value is None:
        return None
    try:
        return parse_date(value)
    except KanbanError as e:
        raise click.BadParameter(str(e))


@click.group(invoke_without_command=True)
@click.option('--data-file', type=click.Path(dir_okay=False, path_type=Path),
              help='Board storage file (default: KANBAN_DATA_FILE or data/storage.json).')
@click.option('--ephemeral', is_flag=True, help='Keep the board in memory only.')
@click.option('--log-level', type=click.Choice(LOG_LEVELS, case_sensitive=False),
              help='Console log level (default: KANBAN_LOG_LEVEL or WARNING).')
@click.option('--no-alt-screen', is_flag=True, help='Draw in the normal screen buffer.')
@click.pass_context
def main(ctx: click.Context, data_file: Optional[Path], ephemeral: bool,
         log_level: Optional[str], no_alt_screen: bool) -> None:
    """Kanban task board with point budgets."""
    settings = load_settings()
    setup_logging(log_dir=None if ephemeral else settings.log_dir,
                  console_level=(log_level or settings.log_level).upper())
    if ephemeral:
        kv = storage.MemoryStore()
    else:
        kv = storage.JsonFileStore(data_file or settings.data_file)
    store = TaskStore(kv).load()
    ctx.obj = {'store': store, 'settings': settings}
    if ctx.invoked_subcommand is None:
        CLI(store, alt_screen=settings.alt_screen and not no_alt_screen,
            archive_days=settings.archive_days, colors=settings.colors).run()


def _renderer(ctx: click.Context) -> BoardRenderer:
    store = ctx.obj['store']
    return BoardRenderer(build_theme(storage.load_theme(store.kv), ctx.obj['settings'].colors))


@main.command()
@click.option('--search', default='', help='Case-insensitive title/description filter.')
@click.option('--due-by', callback=_date_option, help='Only tasks due on/before YYYY-MM-DD.')
@click.option('--sort', 'sort_by', type=click.Choice(SORT_KEYS), default=SORT_KEYS[0])
@click.pass_context
def show(ctx: click.Context, search: str, due_by, sort_by: str) -> None:
    """Print the board once."""
    view = ctx.obj['store'].board(search=search, due_by=due_by, sort_by=sort_by)
    for line in _renderer(ctx).board_lines(view):
        click.echo(line)


@main.command()
@click.argument('title')
@click.option('--description', '-d', required=True)
@click.option('--eta', type=int, default=1, show_default=True, help='Point budget.')
@click.option('--due', callback=_date_option, help='Due date YYYY-MM-DD (default: tomorrow).')
@click.pass_context
def add(ctx: click.Context, title: str, description: str, eta: int, due) -> None:
    """Create a task in Opened."""
    store: TaskStore = ctx.obj['store']
    try:
        task = store.create(title=title, description=description, eta=eta,
                            due_date=due if due is not None else tomorrow(store.now()))
    except KanbanError as e:
        raise click.ClickException(str(e))
    click.echo(f'Added {short_id(task.id)} "{task.title}".')


@main.command()
@click.option('--days', type=click.IntRange(min=0), help='Archive window in days.')
@click.pass_context
def archive(ctx: click.Context, days: Optional[int]) -> None:
    """Archive tasks completed within the window."""
    store: TaskStore = ctx.obj['store']
    window = days if days is not None else ctx.obj['settings'].archive_days
    result = store.archive_completed(store.archive_window_start(window))
    click.echo(archive_message(result.archived_count))


@main.command()
@click.option('--search', default='')
@click.option('--after', callback=_date_option, help='Completed on/after YYYY-MM-DD.')
@click.option('--sort', 'sort_by', type=click.Choice(SORT_KEYS), default=SORT_KEYS[0])
@click.pass_context
def archived(ctx: click.Context, search: str, after, sort_by: str) -> None:
    """List archived tasks."""
    store: TaskStore = ctx.obj['store']
    tasks = store.archived_list(search=search, completed_after=after, sort_by=sort_by)
    for line in _renderer(ctx).archived_lines(tasks, store.archived_count()):
        click.echo(line)


@main.command()
@click.argument('mode', required=False, type=click.Choice([storage.DARK, storage.LIGHT]))
@click.pass_context
def theme(ctx: click.Context, mode: Optional[str]) -> None:
    """Show or set the color theme."""
    kv = ctx.obj['store'].kv
    if mode is None:
        click.echo(storage.load_theme(kv))
        return
    try:
        storage.save_theme(kv, mode)
    except KanbanError as e:
        raise click.ClickException(str(e))
    click.echo(f"Theme set to {mode}.")


if __name__ == "__main__":
    main()
