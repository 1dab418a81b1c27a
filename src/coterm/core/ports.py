# src/coterm/core/ports.py

"""
Ports (interfaces) the session manager depends on.

The scheduler talks to Protocols instead of a concrete terminal. The curses
host is one implementation; tests use in-memory fakes.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

from .events import Event

Program = Callable[..., Any]
# A program is called as program(ctx, *args). Generator functions become
# cooperative task bodies; plain callables run to completion on first resume.


class RawDisplay(Protocol):
    """
    The real character-grid device. Write-only from the session's point of view;
    only the compositor touches it.
    """

    def get_size(self) -> tuple[int, int]: ...
    def set_cursor_pos(self, x: int, y: int) -> None: ...
    def set_cursor_blink(self, blink: bool) -> None: ...
    def set_text_color(self, colour: int) -> None: ...
    def set_background_color(self, colour: int) -> None: ...
    def write(self, text: str) -> None: ...
    def blit(self, text: str, text_colors: str, background_colors: str) -> None: ...
    def clear(self) -> None: ...
    def clear_line(self) -> None: ...
    def flush(self) -> None: ...


class ProgramLoader(Protocol):
    def load(self, identifier: str) -> Program:
        """Resolve a name/path to a program. Raises ProgramLoadError."""
        ...


class Host(Protocol):
    """
    What the scheduler needs from its environment.

    pull_event blocks for at most `timeout` seconds (None = indefinitely) and
    returns exactly one event, or None when the timeout elapsed first.
    """

    display: RawDisplay

    def pull_event(self, timeout: float | None = None) -> Event | None: ...
    def load_program(self, identifier: str) -> Program: ...
    def query_display_size(self) -> tuple[int, int]: ...
