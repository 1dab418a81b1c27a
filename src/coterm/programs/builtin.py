# src/coterm/programs/builtin.py

"""Built-in programs, registered on import."""

from __future__ import annotations

import time

from ..core.events import CHAR, KEY, PASTE, Keys
from ..tasks.task_api import TaskContext
from .registry import registry


def clock(ctx: TaskContext, interval: str = "1"):
    """Redraw the wall-clock time on row 2 every `interval` seconds."""
    try:
        seconds = max(0.1, float(interval))
    except ValueError:
        seconds = 1.0
    while True:
        term = ctx.term
        term.set_cursor_pos(2, 2)
        term.clear_line()
        term.write("Clock: " + time.strftime("%H:%M:%S"))
        yield from ctx.sleep(seconds)


def echo(ctx: TaskContext, *words: str):
    """Echo typed characters. Enter starts a new line, Backspace erases."""
    term = ctx.term
    term.set_cursor_blink(True)
    if words:
        ctx.print(" ".join(words))

    while True:
        event = yield from ctx.await_event()
        term = ctx.term
        if event.type in (CHAR, PASTE) and event.args:
            term.write(str(event.args[0]))
        elif event.type == KEY and event.args:
            code = event.args[0]
            if code == Keys.ENTER:
                ctx.print("")
            elif code == Keys.BACKSPACE:
                x, y = term.get_cursor_pos()
                if x > 1:
                    term.set_cursor_pos(x - 1, y)
                    term.write(" ")
                    term.set_cursor_pos(x - 1, y)


def tasks(ctx: TaskContext, interval: str = "1"):
    """Show the session's task list, refreshed periodically."""
    try:
        seconds = max(0.1, float(interval))
    except ValueError:
        seconds = 1.0
    while True:
        term = ctx.term
        term.clear()
        ctx.print(ctx.list_tasks().format_table())
        yield from ctx.sleep(seconds)


def show_help(ctx: TaskContext):
    """Print the program list, then exit on the next key press."""
    ctx.print(registry.build_help())
    ctx.print("")
    ctx.print("Press any key to close.")
    yield from ctx.await_event(KEY)


registry.register("clock", clock, help_text="Show the current time.")
registry.register("echo", echo, help_text="Echo typed characters.", aliases=["shell"])
registry.register("tasks", tasks, help_text="List session tasks.", aliases=["ps", "list"])
registry.register("help", show_help, help_text="List available programs.", aliases=["?"])
