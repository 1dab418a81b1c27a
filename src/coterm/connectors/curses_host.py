# src/coterm/connectors/curses_host.py

"""
Curses host.

Implements the Host port on a real terminal:
- pull_event: getch with a timeout, translated into coterm events
  (Ctrl+letter arrives as a modifier press/release around the letter key),
- display: a RawDisplay that maps the 16-colour palette onto curses pairs,
- load_program: delegated to a ProgramLoader.
"""

from __future__ import annotations

import curses
import logging
from collections import deque

from ..core.events import (
    CHAR,
    KEY,
    KEY_UP,
    MOUSE_CLICK,
    MOUSE_SCROLL,
    RESIZE,
    TERMINATE,
    Event,
    Keys,
)
from ..core.ports import Program, ProgramLoader
from ..core.terminal import Colour, from_blit

logger = logging.getLogger(__name__)

# (curses base colour, bright) per palette entry.
_PALETTE: dict[int, tuple[int, bool]] = {
    Colour.WHITE: (curses.COLOR_WHITE, True),
    Colour.ORANGE: (curses.COLOR_YELLOW, False),
    Colour.MAGENTA: (curses.COLOR_MAGENTA, True),
    Colour.LIGHT_BLUE: (curses.COLOR_BLUE, True),
    Colour.YELLOW: (curses.COLOR_YELLOW, True),
    Colour.LIME: (curses.COLOR_GREEN, True),
    Colour.PINK: (curses.COLOR_RED, True),
    Colour.GRAY: (curses.COLOR_BLACK, True),
    Colour.LIGHT_GRAY: (curses.COLOR_WHITE, False),
    Colour.CYAN: (curses.COLOR_CYAN, False),
    Colour.PURPLE: (curses.COLOR_MAGENTA, False),
    Colour.BLUE: (curses.COLOR_BLUE, False),
    Colour.BROWN: (curses.COLOR_YELLOW, False),
    Colour.GREEN: (curses.COLOR_GREEN, False),
    Colour.RED: (curses.COLOR_RED, False),
    Colour.BLACK: (curses.COLOR_BLACK, False),
}

_SPECIAL_KEYS: dict[int, int] = {
    curses.KEY_BACKSPACE: Keys.BACKSPACE,
    curses.KEY_ENTER: Keys.ENTER,
    curses.KEY_DOWN: Keys.DOWN,
    curses.KEY_UP: Keys.UP,
    curses.KEY_LEFT: Keys.LEFT,
    curses.KEY_RIGHT: Keys.RIGHT,
    curses.KEY_HOME: Keys.HOME,
    curses.KEY_END: Keys.END,
    curses.KEY_DC: Keys.DELETE,
    curses.KEY_NPAGE: Keys.PAGE_DOWN,
    curses.KEY_PPAGE: Keys.PAGE_UP,
}

_CONTROL_CHARS: dict[str, int] = {
    "\n": Keys.ENTER,
    "\r": Keys.ENTER,
    "\t": Keys.TAB,
    "\b": Keys.BACKSPACE,
    "\x7f": Keys.BACKSPACE,
    "\x1b": Keys.ESCAPE,
}


def _press(code: int) -> list[Event]:
    return [Event(KEY, (code,)), Event(KEY_UP, (code,))]


def translate_key(ch: int | str) -> list[Event]:
    """Translate one get_wch() result into coterm events (no mouse/resize)."""
    if isinstance(ch, int):
        return _press(_SPECIAL_KEYS.get(ch, ch))

    if ch in _CONTROL_CHARS:
        return _press(_CONTROL_CHARS[ch])

    o = ord(ch)
    if 1 <= o <= 26:
        code = ord("A") + o - 1
        return [
            Event(KEY, (Keys.LEFT_CTRL,)),
            Event(KEY, (code,)),
            Event(KEY_UP, (code,)),
            Event(KEY_UP, (Keys.LEFT_CTRL,)),
        ]

    if not ch.isprintable():
        return []
    code = ord(ch.upper()) if ch.isascii() and ch.isalpha() else o
    return [Event(KEY, (code,)), Event(CHAR, (ch,)), Event(KEY_UP, (code,))]


class CursesDisplay:
    """RawDisplay over a curses window. Out-of-range writes are ignored."""

    def __init__(self, stdscr) -> None:
        self.stdscr = stdscr
        self._x = 1
        self._y = 1
        self._fg = int(Colour.WHITE)
        self._bg = int(Colour.BLACK)
        self._pairs: dict[tuple[int, int], int] = {}
        self._colors = False
        try:
            if curses.has_colors():
                curses.start_color()
                self._colors = True
        except curses.error:
            logger.debug("Terminal has no colour support", exc_info=True)

    def _curses_colour(self, colour: int) -> int:
        base, bright = _PALETTE[colour]
        if bright and curses.COLORS >= 16:
            return base + 8
        return base

    def _attr(self, fg: int, bg: int) -> int:
        if not self._colors:
            return curses.A_REVERSE if bg != Colour.BLACK else curses.A_NORMAL
        key = (fg, bg)
        pair = self._pairs.get(key)
        if pair is None:
            pair = len(self._pairs) + 1
            if pair >= curses.COLOR_PAIRS:
                return curses.A_NORMAL
            curses.init_pair(pair, self._curses_colour(fg), self._curses_colour(bg))
            self._pairs[key] = pair
        return curses.color_pair(pair)

    def _put(self, x: int, y: int, text: str, attr: int) -> None:
        h, w = self.stdscr.getmaxyx()
        row, col = y - 1, x - 1
        if row < 0 or row >= h or col < 0 or col >= w:
            return
        try:
            self.stdscr.addnstr(row, col, text, w - col, attr)
        except curses.error:
            # Writing the bottom-right cell moves the cursor off-screen and raises.
            pass

    # ---- RawDisplay ----

    def get_size(self) -> tuple[int, int]:
        h, w = self.stdscr.getmaxyx()
        return w, h

    def set_cursor_pos(self, x: int, y: int) -> None:
        self._x, self._y = int(x), int(y)

    def set_cursor_blink(self, blink: bool) -> None:
        try:
            curses.curs_set(1 if blink else 0)
        except curses.error:
            pass

    def set_text_color(self, colour: int) -> None:
        self._fg = int(colour) & 0xF

    def set_background_color(self, colour: int) -> None:
        self._bg = int(colour) & 0xF

    def write(self, text: str) -> None:
        self._put(self._x, self._y, text, self._attr(self._fg, self._bg))
        self._x += len(text)

    def blit(self, text: str, text_colors: str, background_colors: str) -> None:
        x = self._x
        start = 0
        n = len(text)
        while start < n:
            fg_c, bg_c = text_colors[start], background_colors[start]
            end = start + 1
            while end < n and text_colors[end] == fg_c and background_colors[end] == bg_c:
                end += 1
            self._put(x + start, self._y, text[start:end], self._attr(from_blit(fg_c), from_blit(bg_c)))
            start = end
        self._x = x + n

    def clear(self) -> None:
        w, h = self.get_size()
        attr = self._attr(self._fg, self._bg)
        for y in range(1, h + 1):
            self._put(1, y, " " * w, attr)

    def clear_line(self) -> None:
        w, _ = self.get_size()
        self._put(1, self._y, " " * w, self._attr(self._fg, self._bg))

    def flush(self) -> None:
        h, w = self.stdscr.getmaxyx()
        try:
            self.stdscr.move(min(max(self._y - 1, 0), h - 1), min(max(self._x - 1, 0), w - 1))
        except curses.error:
            pass
        self.stdscr.refresh()


class CursesHost:
    def __init__(self, stdscr, loader: ProgramLoader, *, mouse_row_offset: int = 0) -> None:
        self.stdscr = stdscr
        self.loader = loader
        self.display = CursesDisplay(stdscr)
        self.mouse_row_offset = mouse_row_offset
        self._pending: deque[Event] = deque()

        stdscr.keypad(True)
        try:
            curses.mousemask(curses.ALL_MOUSE_EVENTS)
        except curses.error:
            logger.debug("Mouse support unavailable", exc_info=True)

    def query_display_size(self) -> tuple[int, int]:
        return self.display.get_size()

    def load_program(self, identifier: str) -> Program:
        return self.loader.load(identifier)

    def pull_event(self, timeout: float | None = None) -> Event | None:
        if self._pending:
            return self._pending.popleft()

        self.stdscr.timeout(-1 if timeout is None else max(0, int(timeout * 1000)))
        try:
            ch = self.stdscr.get_wch()
        except KeyboardInterrupt:
            return Event(TERMINATE)
        except curses.error:
            # No input before the timeout.
            return None

        if ch == curses.KEY_RESIZE:
            curses.update_lines_cols()
            return Event(RESIZE)
        if ch == curses.KEY_MOUSE:
            events = self._mouse_events()
        else:
            events = translate_key(ch)

        if not events:
            return None
        self._pending.extend(events[1:])
        return events[0]

    def _mouse_events(self) -> list[Event]:
        try:
            _, x, y, _, bstate = curses.getmouse()
        except curses.error:
            return []
        col, row = x + 1, y + 1 - self.mouse_row_offset

        if bstate & curses.BUTTON4_PRESSED:
            return [Event(MOUSE_SCROLL, (-1, col, row))]
        if bstate & getattr(curses, "BUTTON5_PRESSED", 0):
            return [Event(MOUSE_SCROLL, (1, col, row))]

        for button, mask in (
            (1, curses.BUTTON1_PRESSED | curses.BUTTON1_CLICKED),
            (2, curses.BUTTON3_PRESSED | curses.BUTTON3_CLICKED),
            (3, curses.BUTTON2_PRESSED | curses.BUTTON2_CLICKED),
        ):
            if bstate & mask:
                return [Event(MOUSE_CLICK, (button, col, row))]
        return []
