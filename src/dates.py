"""Date helpers. Every point-in-time is stored as epoch milliseconds.

Due dates are normalized to local start-of-day so that "due by" and
"completed after" comparisons work on whole days.
"""
from __future__ import annotations
from datetime import date, datetime, time, timedelta
from typing import Optional, Union

from errors import ValidationError

DateLike = Union[int, float, date, datetime, str]

DAY_MS = 24 * 60 * 60 * 1000


def now_ms() -> int:
    return int(datetime.now().timestamp() * 1000)


def to_epoch_ms(value: DateLike) -> int:
    """Convert a date, datetime, 'YYYY-MM-DD' string or epoch ms to epoch ms."""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid date: {value!r}")
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, datetime):
        return int(value.timestamp() * 1000)
    if isinstance(value, date):
        return int(datetime.combine(value, time.min).timestamp() * 1000)
    if isinstance(value, str):
        return to_epoch_ms(parse_date(value))
    raise ValidationError(f"Invalid date: {value!r}")


def start_of_day(value: DateLike) -> int:
    """Epoch ms of local midnight on the day containing ``value``."""
    ms = to_epoch_ms(value)
    day = datetime.fromtimestamp(ms / 1000).date()
    return int(datetime.combine(day, time.min).timestamp() * 1000)


def optional_start_of_day(value: Optional[DateLike]) -> Optional[int]:
    if value is None or value == '':
        return None
    return start_of_day(value)


def parse_date(text: str) -> date:
    """Parse YYYY-MM-DD, raising ValidationError for anything else."""
    try:
        return date.fromisoformat(text.strip())
    except ValueError:
        raise ValidationError(f"Invalid date: {text}. Expected YYYY-MM-DD")


def days_before(ms: int, days: int) -> int:
    return ms - days * DAY_MS


def tomorrow(now: Optional[int] = None) -> int:
    """Start of the next day; the default due date for new tasks."""
    base = datetime.fromtimestamp((now if now is not None else now_ms()) / 1000)
    return start_of_day(base.date() + timedelta(days=1))


def format_date(ms: Optional[int]) -> str:
    """Render like 'Oct 18, 2026'; 'N/A' when absent."""
    if not ms:
        return 'N/A'
    d = datetime.fromtimestamp(ms / 1000)
    return f"{d.strftime('%b')} {d.day}, {d.year}"


def iso_day(ms: Optional[int]) -> str:
    if not ms:
        return ''
    return datetime.fromtimestamp(ms / 1000).date().isoformat()
