# src/coterm/tasks/task_api.py

"""
Task-facing API.

Programs receive a TaskContext as their first argument. It is the only thing a
program needs to cooperate with the session:

    def counter(ctx):
        n = 0
        while True:
            ctx.print(f"tick {n}")
            n += 1
            yield from ctx.sleep(1.0)

The two suspension primitives are `await_event` and `sleep`; both are
generators and must be used with `yield from`.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..core.events import Event
from ..core.terminal import VirtualTerminal, print_text
from .task_models import Task, WaitEvent, WaitTimer

if TYPE_CHECKING:
    from ..core.state import SessionSnapshot


@dataclass(frozen=True, slots=True)
class HostServices:
    """
    Capabilities the scheduler hands to every task at creation.

    Tasks never reach into the scheduler directly; everything goes through
    these callables.
    """

    clock: Callable[[], float]
    start_timer: Callable[[int, float], tuple[int, float]]
    cancel_timer: Callable[[int, int], bool]
    spawn: Callable[..., int]
    list_tasks: Callable[[], "SessionSnapshot"]
    host: Any = None


class TaskContext:
    """Per-task view of the session."""

    __slots__ = ("_task", "_services")

    def __init__(self, task: Task, services: HostServices) -> None:
        self._task = task
        self._services = services

    @property
    def task_id(self) -> int:
        return self._task.id

    @property
    def name(self) -> str:
        return self._task.name

    @property
    def term(self) -> VirtualTerminal:
        # Re-read every time: the terminal is replaced on host resize.
        return self._task.vt

    @property
    def host(self) -> Any:
        return self._services.host

    def clock(self) -> float:
        return self._services.clock()

    def print(self, text: object = "") -> int:
        return print_text(self._task.vt, text)

    # ---- suspension primitives ----

    def await_event(self, filter: str | None = None):
        """Suspend until an event of type `filter` (any event if None) arrives."""
        event: Event = yield WaitEvent(filter)
        return event

    def sleep(self, seconds: float):
        """Suspend for at least `seconds`."""
        timer_id, deadline = self._services.start_timer(self._task.id, seconds)
        event: Event = yield WaitTimer(timer_id, deadline)
        return event

    # ---- timers ----

    def start_timer(self, seconds: float) -> int:
        """Start a timer; a ("timer", id) event is delivered once it is due."""
        timer_id, _ = self._services.start_timer(self._task.id, seconds)
        return timer_id

    def cancel_timer(self, timer_id: int) -> bool:
        return self._services.cancel_timer(self._task.id, timer_id)

    # ---- session ----

    def spawn(self, program: str, *args: Any) -> int:
        return self._services.spawn(program, args)

    def list_tasks(self) -> SessionSnapshot:
        return self._services.list_tasks()
