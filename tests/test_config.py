"""Tests for settings, logging setup and rendering helpers."""

import logging
from pathlib import Path

from config import load_settings, read_dotenv, truthy
from logging_setup import setup_logging
from models import COMPLETED, OPENED, Task
from render import BoardRenderer, header_title, visible_len
from theme import build_theme
from views import BoardView


class TestSettings:
    def test_defaults(self, tmp_path):
        settings = load_settings(environ={}, dotenv_path=tmp_path / "missing.env")
        assert settings.data_file.name == "storage.json"
        assert settings.log_level == "WARNING"
        assert settings.alt_screen is True
        assert settings.archive_days == 7

    def test_env_beats_dotenv(self, tmp_path):
        dotenv = tmp_path / ".env"
        dotenv.write_text("# comment\nKANBAN_ARCHIVE_DAYS=14\nKANBAN_LOG_LEVEL=info\nOTHER=1\n")
        settings = load_settings(environ={"KANBAN_ARCHIVE_DAYS": "3", "KANBAN_ALT_SCREEN": "off",
                                          "KANBAN_DATA_FILE": str(tmp_path / "b.json")},
                                 dotenv_path=dotenv)
        assert settings.archive_days == 3
        assert settings.log_level == "INFO"
        assert settings.alt_screen is False
        assert settings.data_file == tmp_path / "b.json"

    def test_bad_archive_days_falls_back(self, tmp_path):
        settings = load_settings(environ={"KANBAN_ARCHIVE_DAYS": "week"}, dotenv_path=tmp_path / "x")
        assert settings.archive_days == 7

    def test_read_dotenv_only_prefixed(self, tmp_path):
        dotenv = tmp_path / ".env"
        dotenv.write_text('KANBAN_PRIMARY="#112233"\nPATH=/bin\nnot a pair\n')
        assert read_dotenv(dotenv) == {"KANBAN_PRIMARY": "#112233"}

    def test_truthy(self):
        assert truthy(None) is True
        assert truthy("no") is False
        assert truthy("1", default=False) is True


def test_setup_logging_writes_file(tmp_path):
    root = logging.getLogger()
    saved = list(root.handlers)
    try:
        log_file = setup_logging(log_dir=tmp_path / "logs", console_level="ERROR")
        logging.getLogger("board").info("hello from test")
        for h in root.handlers:
            h.flush()
        assert log_file == tmp_path / "logs" / "kanban.log"
        assert "hello from test" in Path(log_file).read_text()
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
        for h in saved:
            root.addHandler(h)
        logging.captureWarnings(False)


class TestRender:
    def test_board_lines(self):
        view = BoardView()
        view.groups[OPENED] = [Task(id="abcdef99", title="Plan sprint", description="d", eta=3)]
        view.groups[COMPLETED] = [Task(id="fedcba11", title="Ship", description="d", eta=2,
                                       status=COMPLETED, completed_date=1760000000000)]
        view.points = {OPENED: 3, "In Progress": 0, COMPLETED: 2}
        lines = BoardRenderer(build_theme(), width=150).board_lines(view)
        assert header_title(OPENED, 3) in lines[0]
        assert "COMPLETED (2 pts)" in lines[0]
        body = "\n".join(lines[2:])
        assert "abcdef Plan sprint [3]" in body
        assert "(empty)" in body
        assert "✓" in body
        assert all(visible_len(line) <= 150 for line in lines)

    def test_task_detail_lines(self):
        task = Task.from_dict({"id": "x1", "title": "Report", "description": "numbers", "eta": 5,
                               "subtasks": [{"id": "s", "title": "draft", "eta": 2, "completed": True}]})
        lines = BoardRenderer(width=80).task_detail_lines(task)
        assert "Points: 5 (subtasks 2, remaining 3)" in lines
        assert any("[x] draft" in line for line in lines)

    def test_archived_lines_empty(self):
        lines = BoardRenderer(width=80).archived_lines([], 4)
        assert "showing 0 of 4" in lines[0]
        assert "No tasks match" in lines[1]
