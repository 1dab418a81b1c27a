# src/coterm/core/terminal.py

"""
Virtual terminal: an in-memory character grid owned by one task.

Coordinates are 1-based, (x, y) = (column, row). Every coordinate is clamped
to the grid and writes past the right edge are clipped, so programs can never
make the terminal raise by drawing out of bounds.

Colours follow a 16-entry palette. In blit strings each cell colour is one
lowercase hex digit ("0" white ... "f" black).
"""

from __future__ import annotations

from collections.abc import Iterator
from enum import IntEnum


class Colour(IntEnum):
    WHITE = 0
    ORANGE = 1
    MAGENTA = 2
    LIGHT_BLUE = 3
    YELLOW = 4
    LIME = 5
    PINK = 6
    GRAY = 7
    LIGHT_GRAY = 8
    CYAN = 9
    PURPLE = 10
    BLUE = 11
    BROWN = 12
    GREEN = 13
    RED = 14
    BLACK = 15


BLANK = " "
_HEX = "0123456789abcdef"


def to_blit(colour: int) -> str:
    return _HEX[int(colour)]


def from_blit(digit: str) -> int:
    idx = _HEX.find(digit.lower()) if len(digit) == 1 else -1
    if idx < 0:
        raise ValueError(f"invalid blit colour: {digit!r}")
    return idx


def _clamp(v: int, lo: int, hi: int) -> int:
    return lo if v < lo else hi if v > hi else v


def _coerce_colour(value: object, current: int) -> int:
    try:
        return _clamp(int(value), 0, 15)  # type: ignore[call-overload]
    except (TypeError, ValueError, OverflowError):
        return current


def _coerce_coord(value: object, current: int, hi: int) -> int:
    try:
        return _clamp(int(value), 1, hi)  # type: ignore[call-overload]
    except (TypeError, ValueError, OverflowError):
        return current


def _printable(text: str) -> str:
    return "".join(ch if ch.isprintable() else "?" for ch in text)


class VirtualTerminal:
    """
    Character-cell display buffer.

    Size is fixed for the lifetime of the object; on host resize a new
    terminal is created instead of mutating this one.
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        text_color: int = Colour.WHITE,
        background_color: int = Colour.BLACK,
    ) -> None:
        self.width = max(1, int(width))
        self.height = max(1, int(height))
        self._x = 1
        self._y = 1
        self._fg = _coerce_colour(text_color, Colour.WHITE)
        self._bg = _coerce_colour(background_color, Colour.BLACK)
        self._blink = False

        self._chars: list[list[str]] = []
        self._fgs: list[list[int]] = []
        self._bgs: list[list[int]] = []
        for _ in range(self.height):
            self._append_blank_row()

    # ---- state ----

    def get_size(self) -> tuple[int, int]:
        return self.width, self.height

    def get_cursor_pos(self) -> tuple[int, int]:
        return self._x, self._y

    def set_cursor_pos(self, x: int, y: int) -> None:
        self._x = _coerce_coord(x, self._x, self.width)
        self._y = _coerce_coord(y, self._y, self.height)

    def get_text_color(self) -> int:
        return self._fg

    def set_text_color(self, colour: int) -> None:
        self._fg = _coerce_colour(colour, self._fg)

    def get_background_color(self) -> int:
        return self._bg

    def set_background_color(self, colour: int) -> None:
        self._bg = _coerce_colour(colour, self._bg)

    def get_cursor_blink(self) -> bool:
        return self._blink

    def set_cursor_blink(self, blink: bool) -> None:
        self._blink = bool(blink)

    def is_color(self) -> bool:
        return True

    # ---- drawing ----

    def write(self, text: object) -> None:
        """Write at the cursor in the current colours, clipping at the right edge."""
        s = _printable(str(text))
        row = self._y - 1
        for i, ch in enumerate(s):
            col = self._x + i
            if col > self.width:
                break
            self._chars[row][col - 1] = ch
            self._fgs[row][col - 1] = self._fg
            self._bgs[row][col - 1] = self._bg
        self._x = _clamp(self._x + len(s), 1, self.width)

    def blit(self, text: str, text_colors: str, background_colors: str) -> None:
        """
        Write text with explicit per-cell colours.

        The current text/background colour state is neither used nor changed.
        Raises ValueError if the three strings differ in length or a colour
        digit is unknown.
        """
        if not (len(text) == len(text_colors) == len(background_colors)):
            raise ValueError("blit arguments must be the same length")
        fgs = [from_blit(c) for c in text_colors]
        bgs = [from_blit(c) for c in background_colors]
        s = _printable(text)

        row = self._y - 1
        for i, ch in enumerate(s):
            col = self._x + i
            if col > self.width:
                break
            self._chars[row][col - 1] = ch
            self._fgs[row][col - 1] = fgs[i]
            self._bgs[row][col - 1] = bgs[i]
        self._x = _clamp(self._x + len(s), 1, self.width)

    def clear(self) -> None:
        for y in range(self.height):
            self._blank_row(y)
        self._x, self._y = 1, 1

    def clear_line(self) -> None:
        self._blank_row(self._y - 1)

    def scroll(self, n: int) -> None:
        """Shift rows up (n > 0) or down (n < 0); vacated rows are blank."""
        n = int(n)
        if n == 0:
            return
        if abs(n) >= self.height:
            self.clear()
            return

        if n > 0:
            del self._chars[:n], self._fgs[:n], self._bgs[:n]
            for _ in range(n):
                self._append_blank_row()
        else:
            k = -n
            del self._chars[-k:], self._fgs[-k:], self._bgs[-k:]
            for _ in range(k):
                self._chars.insert(0, [BLANK] * self.width)
                self._fgs.insert(0, [self._fg] * self.width)
                self._bgs.insert(0, [self._bg] * self.width)

    # ---- reading back ----

    def get_line(self, y: int) -> tuple[str, str, str]:
        """Row `y` as (text, text colours, background colours) blit strings."""
        row = _clamp(int(y), 1, self.height) - 1
        return (
            "".join(self._chars[row]),
            "".join(to_blit(c) for c in self._fgs[row]),
            "".join(to_blit(c) for c in self._bgs[row]),
        )

    def lines(self) -> Iterator[tuple[str, str, str]]:
        for y in range(1, self.height + 1):
            yield self.get_line(y)

    # ---- internals ----

    def _append_blank_row(self) -> None:
        self._chars.append([BLANK] * self.width)
        self._fgs.append([self._fg] * self.width)
        self._bgs.append([self._bg] * self.width)

    def _blank_row(self, row: int) -> None:
        self._chars[row] = [BLANK] * self.width
        self._fgs[row] = [self._fg] * self.width
        self._bgs[row] = [self._bg] * self.width


def _newline(vt: VirtualTerminal) -> None:
    _, y = vt.get_cursor_pos()
    if y < vt.height:
        vt.set_cursor_pos(1, y + 1)
    else:
        vt.scroll(1)
        vt.set_cursor_pos(1, vt.height)


def print_text(vt: VirtualTerminal, text: object) -> int:
    """
    Print `text` followed by a newline, wrapping at the right edge and
    scrolling when the cursor runs off the bottom row.

    Returns the number of lines advanced.
    """
    advanced = 0
    for i, part in enumerate(str(text).split("\n")):
        if i > 0:
            _newline(vt)
            advanced += 1
        col, _ = vt.get_cursor_pos()
        while part:
            room = vt.width - col + 1
            chunk, part = part[:room], part[room:]
            vt.write(chunk)
            if part:
                _newline(vt)
                advanced += 1
                col = 1
    _newline(vt)
    return advanced + 1
