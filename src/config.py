"""Settings loaded from the environment plus an optional project .env file.

Priority: real env var > .env entry > default.
"""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent
ENV_PREFIX = 'KANBAN_'


def truthy(value: Optional[str], default: bool = True) -> bool:
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "no", "off", ""}


def read_dotenv(path: Path) -> Dict[str, str]:
    """Parse KEY=VALUE lines with the project prefix; unreadable file -> {}."""
    values: Dict[str, str] = {}
    if not path.exists():
        return values
    try:
        text = path.read_text(encoding='utf-8')
    except OSError as e:
        logger.warning("Ignoring unreadable %s: %s", path, e)
        return values
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith('#') or '=' not in line:
            continue
        k, v = line.split('=', 1)
        k = k.strip()
        if k.startswith(ENV_PREFIX):
            values[k] = v.strip().strip('"').strip("'")
    return values


@dataclass(frozen=True)
class Settings:
    data_file: Path
    log_dir: Path
    log_level: str
    alt_screen: bool
    archive_days: int
    colors: Mapping[str, str]


def load_settings(
    environ: Optional[Mapping[str, str]] = None,
    dotenv_path: Optional[Path] = None,
) -> Settings:
    env = dict(read_dotenv(dotenv_path or PROJECT_ROOT / '.env'))
    env.update({k: v for k, v in (os.environ if environ is None else environ).items()
                if k.startswith(ENV_PREFIX)})

    def get(name: str) -> Optional[str]:
        value = env.get(ENV_PREFIX + name)
        return value if value is not None and value.strip() != '' else None

    days_raw = get('ARCHIVE_DAYS')
    try:
        archive_days = int(days_raw) if days_raw is not None else 7
    except ValueError:
        logger.warning("Invalid KANBAN_ARCHIVE_DAYS=%r, using 7", days_raw)
        archive_days = 7
    if archive_days < 1:
        archive_days = 7

    data_file = get('DATA_FILE')
    log_dir = get('LOG_DIR')
    return Settings(
        data_file=Path(data_file).expanduser() if data_file else PROJECT_ROOT / 'data' / 'storage.json',
        log_dir=Path(log_dir).expanduser() if log_dir else PROJECT_ROOT / 'data' / 'logs',
        log_level=(get('LOG_LEVEL') or 'WARNING').upper(),
        alt_screen=truthy(env.get(ENV_PREFIX + 'ALT_SCREEN'), True),
        archive_days=archive_days,
        colors={k: v for k, v in env.items()
                if k in {'KANBAN_PRIMARY', 'KANBAN_OPENED', 'KANBAN_INPROGRESS', 'KANBAN_COMPLETED'}},
    )
