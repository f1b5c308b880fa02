"""Rich Console factory and theme for lockerctl output.

Consoles render into a StringIO buffer so every renderer keeps the
``format_result() -> str`` contract. Rich drops color codes on its own
when the output is not a terminal (tests, pipes).
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

LOCKER_THEME = Theme(
    {
        "locker.ok": "bold green",
        "locker.error": "bold red",
        "locker.warning": "bold yellow",
        "locker.op": "bold cyan",
        "locker.key": "dim",
        "locker.id": "bold blue",
        "locker.otp": "bold magenta",
        "locker.title": "bold",
        "locker.status.available": "green",
        "locker.status.occupied": "yellow",
        "locker.status.open": "yellow",
        "locker.status.closed": "dim",
    }
)

_STATUS_STYLES: dict[str, str] = {
    "available": "locker.status.available",
    "occupied": "locker.status.occupied",
    "open": "locker.status.open",
    "closed": "locker.status.closed",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes.
        width: Override terminal width (keeps table layout stable in tests).
    """
    return Console(
        file=StringIO(),
        theme=LOCKER_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_status(status: str) -> str:
    return _STATUS_STYLES.get(status, "")
