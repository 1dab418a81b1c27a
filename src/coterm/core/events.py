# src/coterm/core/events.py

"""
Events delivered by the host and routed to tasks.

An event is a type tag plus positional arguments, e.g. ("key", 65) or
("timer", 3). Key codes are plain ints: printable keys use the code of the
upper-case character ("A" -> 65), special keys use the values below.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# ---- Event types ----
KEY = "key"
KEY_UP = "key_up"
CHAR = "char"
PASTE = "paste"
MOUSE_CLICK = "mouse_click"
MOUSE_UP = "mouse_up"
MOUSE_DRAG = "mouse_drag"
MOUSE_SCROLL = "mouse_scroll"

TIMER = "timer"
TERMINATE = "terminate"
RESIZE = "term_resize"

# Input-class events only ever reach the focused task.
INPUT_EVENTS: frozenset[str] = frozenset(
    {KEY, KEY_UP, CHAR, PASTE, MOUSE_CLICK, MOUSE_UP, MOUSE_DRAG, MOUSE_SCROLL}
)


@dataclass(frozen=True, slots=True)
class Event:
    type: str
    args: tuple[Any, ...] = ()

    @classmethod
    def of(cls, type_: str, *args: Any) -> Event:
        return cls(type=type_, args=tuple(args))

    @property
    def is_input(self) -> bool:
        return self.type in INPUT_EVENTS

    def __iter__(self):
        # Allows `name, *args = event` like a host tuple.
        yield self.type
        yield from self.args


class Keys:
    """Key codes for non-printable keys."""

    BACKSPACE = 8
    TAB = 9
    ENTER = 10
    ESCAPE = 27
    SPACE = 32

    DOWN = 258
    UP = 259
    LEFT = 260
    RIGHT = 261
    HOME = 262
    DELETE = 330
    PAGE_DOWN = 338
    PAGE_UP = 339
    END = 360

    LEFT_CTRL = 1001
    RIGHT_CTRL = 1002
    LEFT_ALT = 1003
    RIGHT_ALT = 1004

    @staticmethod
    def letter(ch: str) -> int:
        """Key code of a letter key ("t" and "T" both map to 84)."""
        if len(ch) != 1 or not ch.isalpha():
            raise ValueError(f"not a letter key: {ch!r}")
        return ord(ch.upper())


MODIFIER_KEYS: frozenset[int] = frozenset({Keys.LEFT_CTRL, Keys.RIGHT_CTRL})
