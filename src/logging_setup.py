"""Logging configuration: quiet console, full log file.

The board redraws the terminal on every command, so the console handler
only shows warnings by default; everything goes to the file.
"""
from __future__ import annotations
import logging
import sys
from pathlib import Path
from typing import Optional, Union


def setup_logging(
    *,
    log_dir: Optional[Union[str, Path]] = None,
    console_level: Union[int, str] = logging.WARNING,
    file_level: int = logging.DEBUG,
) -> Optional[Path]:
    """Configure the root logger once at startup; returns the log file path."""
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    root.addHandler(ch)

    log_file: Optional[Path] = None
    if log_dir is not None:
        log_path = Path(log_dir)
        try:
            log_path.mkdir(parents=True, exist_ok=True)
            log_file = log_path / 'kanban.log'
            fh = logging.FileHandler(str(log_file), encoding="utf-8")
        except OSError as e:
            root.warning("File logging disabled: %s", e)
            log_file = None
        else:
            fh.setLevel(file_level)
            fh.setFormatter(fmt)
            root.addHandler(fh)

    # PersistenceWarning and friends end up in the log as 'py.warnings'
    logging.captureWarnings(True)
    return log_file
