"""Rich Console factory and theme for verifyhub output.

Consoles render into a StringIO buffer so renderers return plain
strings. Outside a terminal (tests, pipes) Rich drops colour codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

VERIFYHUB_THEME = Theme(
    {
        "vh.ok": "bold green",
        "vh.error": "bold red",
        "vh.warning": "bold yellow",
        "vh.op": "bold cyan",
        "vh.key": "dim",
        "vh.id": "bold blue",
        "vh.title": "bold",
        "vh.money": "bold magenta",
        "vh.discount": "green",
        "vh.surge": "yellow",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=VERIFYHUB_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def status_style(hex_color: str | None) -> str:
    """Rich style for a lifecycle state colour, e.g. ``#10b981``."""
    return f"bold {hex_color}" if hex_color else ""
