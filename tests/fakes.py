# tests/fakes.py

from __future__ import annotations

from collections import defaultdict, deque
from collections.abc import Iterable
from dataclasses import dataclass, field

from coterm.core.errors import ProgramLoadError
from coterm.core.events import TERMINATE, Event
from coterm.core.ports import Program


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeDisplay:
    """
    In-memory RawDisplay.

    Keeps the last content of every row and a log of which rows were written,
    so tests can assert both what is on screen and how much I/O happened.
    """

    def __init__(self, width: int = 20, height: int = 6) -> None:
        self.width = width
        self.height = height
        self.rows: dict[int, tuple[str, str, str]] = {}
        self.written_rows: list[int] = []
        self.cursor = (1, 1)
        self.blink = False
        self.fg = 0
        self.bg = 15
        self.flushes = 0

    def get_size(self) -> tuple[int, int]:
        return self.width, self.height

    def set_cursor_pos(self, x: int, y: int) -> None:
        self.cursor = (x, y)

    def set_cursor_blink(self, blink: bool) -> None:
        self.blink = blink

    def set_text_color(self, colour: int) -> None:
        self.fg = colour

    def set_background_color(self, colour: int) -> None:
        self.bg = colour

    def write(self, text: str) -> None:
        self.blit(text, format(self.fg, "x") * len(text), format(self.bg, "x") * len(text))

    def blit(self, text: str, text_colors: str, background_colors: str) -> None:
        _, y = self.cursor
        self.rows[y] = (text, text_colors, background_colors)
        self.written_rows.append(y)

    def clear(self) -> None:
        self.rows.clear()

    def clear_line(self) -> None:
        self.rows.pop(self.cursor[1], None)

    def flush(self) -> None:
        self.flushes += 1

    def row_text(self, y: int) -> str:
        return self.rows.get(y, ("", "", ""))[0]


class FakeHost:
    """
    Scripted Host.

    Events are returned in order; an exception instance in the script is raised
    instead. When the script runs out, a terminate event ends the session.
    """

    def __init__(
        self,
        events: Iterable[Event | BaseException | None] = (),
        *,
        programs: dict[str, Program] | None = None,
        size: tuple[int, int] = (20, 6),
    ) -> None:
        self.display = FakeDisplay(*size)
        self.events: deque[Event | BaseException | None] = deque(events)
        self.programs = dict(programs or {})
        self.timeouts: list[float | None] = []

    def pull_event(self, timeout: float | None = None) -> Event | None:
        self.timeouts.append(timeout)
        if not self.events:
            return Event(TERMINATE)
        item = self.events.popleft()
        if isinstance(item, BaseException):
            raise item
        return item

    def load_program(self, identifier: str) -> Program:
        try:
            return self.programs[identifier]
        except KeyError:
            raise ProgramLoadError(identifier, "program not found") from None

    def query_display_size(self) -> tuple[int, int]:
        return self.display.get_size()

    def resize(self, width: int, height: int) -> None:
        self.display.width, self.display.height = width, height


@dataclass(slots=True)
class Recorder:
    """Builds waiting programs that record every event they are resumed with."""

    received: dict[int, list[Event]] = field(default_factory=lambda: defaultdict(list))
    started: list[int] = field(default_factory=list)

    def waiter(self, filter: str | None = None) -> Program:
        def program(ctx):
            self.started.append(ctx.task_id)
            while True:
                event = yield from ctx.await_event(filter)
                self.received[ctx.task_id].append(event)

        return program

    def events_for(self, task_id: int) -> list[Event]:
        return list(self.received.get(task_id, []))


def key(code: int) -> Event:
    return Event.of("key", code)


def key_up(code: int) -> Event:
    return Event.of("key_up", code)
