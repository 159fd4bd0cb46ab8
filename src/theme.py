"""Color & style helpers.

Decisions:
- Two palettes (dark / light); the chosen mode is persisted with the board.
- Truecolor preferred; falls back to 256-color cube if unsupported.
- Disables automatically when not a TTY unless FORCE_COLOR=1.
- Honors NO_COLOR for complete disable.
- Supports per-status overrides via KANBAN_<ROLE> (environment or .env).
"""
from __future__ import annotations
import os, sys
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from models import COMPLETED, IN_PROGRESS, OPENED
from storage import DARK, LIGHT

_FORCE = os.environ.get("FORCE_COLOR", "").lower() in {"1", "true", "yes", "on"}
_NO_COLOR = os.environ.get("NO_COLOR") is not None
_ENABLE = (_FORCE or sys.stdout.isatty()) and not _NO_COLOR
_COLORTERM = os.environ.get("COLORTERM", "").lower()
_USE_TRUECOLOR = _ENABLE and any(tok in _COLORTERM for tok in ("truecolor", "24bit"))

def _code(part: str) -> str:
    """Generate ANSI escape code for a given style part."""
    return f"\033[{part}m" if _ENABLE else ''

def _hex_to_rgb(hex_code: str) -> tuple[int,int,int]:
    """Convert a hex color code to an RGB tuple."""
    h = hex_code.lstrip('#')
    return int(h[0:2],16), int(h[2:4],16), int(h[4:6],16)

def _fg_256(r: int, g: int, b: int) -> str:
    """Approximate RGB to xterm 256-color cube."""
    def to_6(x: int) -> int:
        return int(round(x / 255 * 5))
    idx = 16 + 36 * to_6(r) + 6 * to_6(g) + to_6(b)
    return f"\033[38;5;{idx}m"

def from_hex(hex_code: str) -> str:
    """Convert a hex color code to an ANSI escape sequence."""
    if not _ENABLE:
        return ''
    r, g, b = _hex_to_rgb(hex_code)
    if _USE_TRUECOLOR:
        return f"\033[38;2;{r};{g};{b}m"
    return _fg_256(r, g, b)

def is_hex(value: str) -> bool:
    h = value.strip().lstrip('#')
    return len(h) == 6 and all(c in '0123456789abcdefABCDEF' for c in h)

RESET = _code('0')
BOLD = _code('1')
DIM = _code('2')

PALETTES: Dict[str, Dict[str, str]] = {
    DARK: {
        'primary': '#476EAE',
        'opened': '#48B3AF',
        'in_progress': '#F6FF99',
        'completed': '#A7E399',
        'error': '#F87171',
    },
    LIGHT: {
        'primary': '#1E3A8A',
        'opened': '#0F766E',
        'in_progress': '#A16207',
        'completed': '#15803D',
        'error': '#B91C1C',
    },
}

ROLE_ENV = {
    'primary': 'KANBAN_PRIMARY',
    'opened': 'KANBAN_OPENED',
    'in_progress': 'KANBAN_INPROGRESS',
    'completed': 'KANBAN_COMPLETED',
}


@dataclass(frozen=True)
class Theme:
    mode: str
    header: str
    task_id: str
    empty: str
    error: str
    status: Mapping[str, str]


def build_theme(mode: str = DARK, overrides: Optional[Mapping[str, str]] = None) -> Theme:
    """Resolve a palette (override > palette default) into ANSI sequences."""
    hexes = dict(PALETTES.get(mode, PALETTES[DARK]))
    for role, env_name in ROLE_ENV.items():
        value = (overrides or {}).get(env_name)
        if value and is_hex(value):
            hexes[role] = '#' + value.strip().lstrip('#')
    primary = from_hex(hexes['primary'])
    return Theme(
        mode=mode if mode in PALETTES else DARK,
        header=primary,
        task_id=primary + BOLD,
        empty=DIM + primary,
        error=from_hex(hexes['error']),
        status={
            OPENED: from_hex(hexes['opened']),
            IN_PROGRESS: from_hex(hexes['in_progress']),
            COMPLETED: from_hex(hexes['completed']),
        },
    )

def color(text: str, *styles: str) -> str:
    """Apply ANSI styles to a given text."""
    if not _ENABLE or not any(styles):
        return text
    return ''.join(styles) + text + RESET
