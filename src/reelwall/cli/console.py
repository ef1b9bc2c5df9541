"""CLI console helpers with optional Rich support.

Rich is imported lazily so that ``--help``, ``--version`` and ``serve``
keep working on an install without it; output then falls back to
plain text on stderr.
"""

from __future__ import annotations

import sys
from typing import Any

from reelwall.exceptions import EnvironmentError


def load_rich_console_class() -> type[Any]:
    """Return ``rich.console.Console`` or raise :class:`EnvironmentError`."""
    try:
        from rich.console import Console
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "rich is not installed. Install with: pip install rich",
        ) from exc
    return Console


def rich_available() -> bool:
    try:
        load_rich_console_class()
    except EnvironmentError:
        return False
    return True


class _ConsoleProxy:
    """``print``-compatible proxy that renders through Rich when present."""

    def print(self, *objects: object) -> None:
        try:
            console_class = load_rich_console_class()
        except EnvironmentError:
            print(*objects, file=sys.stderr)
            return
        console_class(stderr=True).print(*objects)


console = _ConsoleProxy()
