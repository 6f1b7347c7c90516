"""CLI console helpers with optional Rich support.

Rich is imported lazily so bootstrap paths (``--help``, ``--version``)
keep working even when it is missing; output then degrades to plain
stderr text.
"""

from __future__ import annotations

import sys
from typing import Any

from ytd_bot.exceptions import EnvironmentError, YtdBotError


def _load_rich_console_class() -> type[Any]:
    """Return ``rich.console.Console`` class or raise ``EnvironmentError``."""
    try:
        from rich.console import Console
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "rich is not installed. Install with: pip install rich",
        ) from exc
    return Console


def get_rich_console() -> Any:
    """Create a Rich console instance targeting stderr."""
    console_class = _load_rich_console_class()
    return console_class(stderr=True)


class _ConsoleProxy:
    """Minimal ``print``-compatible proxy with Rich fallback."""

    def __init__(self) -> None:
        self._rich: Any | None = None

    def _console(self) -> Any | None:
        if self._rich is None:
            try:
                self._rich = get_rich_console()
            except EnvironmentError:
                return None
        return self._rich

    def print(self, *objects: object) -> None:
        """Render with Rich when available, else plain stderr print."""
        rich_console = self._console()
        if rich_console is None:
            print(*objects, file=sys.stderr)
            return
        rich_console.print(*objects)

    def error(self, exc: YtdBotError) -> None:
        """Render a domain error and its hint."""
        self.print(f"[bold red]Error:[/bold red] {exc}")
        if exc.hint:
            self.print(f"[yellow]Hint:[/yellow] {exc.hint}")


console = _ConsoleProxy()
