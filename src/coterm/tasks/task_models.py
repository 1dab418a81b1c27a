# src/coterm/tasks/task_models.py

from __future__ import annotations

import logging
from collections.abc import Generator
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Union

from ..core.events import TIMER, Event
from ..core.terminal import VirtualTerminal

logger = logging.getLogger(__name__)


class TaskState(StrEnum):
    """
    Task lifecycle state.

    READY is the initial state, before the unconditional first resume.
    DEAD and CRASHED are terminal: the task is never resumed again.
    """

    READY = "ready"
    WAITING_EVENT = "waiting_event"
    WAITING_TIMER = "waiting_timer"
    DEAD = "dead"
    CRASHED = "crashed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskState.DEAD, TaskState.CRASHED)


# ---- Resume outcomes (closed tagged union) ----


@dataclass(frozen=True, slots=True)
class Ready:
    pass


@dataclass(frozen=True, slots=True)
class WaitEvent:
    filter: str | None = None

    def accepts(self, event: Event) -> bool:
        return self.filter is None or self.filter == event.type


@dataclass(frozen=True, slots=True)
class WaitTimer:
    timer_id: int
    deadline: float

    def accepts(self, event: Event) -> bool:
        return event.type == TIMER and bool(event.args) and event.args[0] == self.timer_id


@dataclass(frozen=True, slots=True)
class Done:
    pass


@dataclass(frozen=True, slots=True)
class Failed:
    message: str


WaitCondition = Union[WaitEvent, WaitTimer]
ResumeOutcome = Union[Ready, WaitEvent, WaitTimer, Done, Failed]

TaskBody = Generator[Any, "Event | None", Any]


def as_wait_condition(value: Any) -> WaitCondition:
    """
    Interpret what a program yielded.

    None -> wait for any event; str -> wait for that event type;
    WaitEvent/WaitTimer pass through. Anything else is a program bug.
    """
    if value is None:
        return WaitEvent(None)
    if isinstance(value, str):
        return WaitEvent(value)
    if isinstance(value, (WaitEvent, WaitTimer)):
        return value
    raise TypeError(f"task yielded {type(value).__name__!s}, expected a wait condition")


def _failure_message(exc: BaseException) -> str:
    if isinstance(exc, SystemExit):
        return f"SystemExit({exc.code!r})"
    return str(exc) or type(exc).__name__


@dataclass(slots=True)
class TimerEntry:
    timer_id: int
    deadline: float
    owner_id: int


@dataclass(slots=True, eq=False)
class Task:
    id: int
    name: str
    vt: VirtualTerminal
    body: TaskBody | None = None
    args: tuple[Any, ...] = ()

    state: TaskState = TaskState.READY
    wait: WaitCondition | None = None
    error: str | None = None
    created_at: float = 0.0
    resumes: int = 0
    seen_crashed: bool = False

    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def alive(self) -> bool:
        return not self.state.is_terminal

    @property
    def filter(self) -> str | None:
        return self.wait.filter if isinstance(self.wait, WaitEvent) else None

    @property
    def deadline(self) -> float | None:
        return self.wait.deadline if isinstance(self.wait, WaitTimer) else None

    def resume(self, event: Event | None) -> ResumeOutcome:
        """
        Run the body until its next suspension point.

        Errors raised by the program are contained here and reported as Failed;
        they never propagate into the scheduler.
        """
        if not self.alive or self.body is None:
            return Done()

        self.resumes += 1
        try:
            if self.resumes == 1:
                yielded = next(self.body)
            else:
                yielded = self.body.send(event)
            outcome: ResumeOutcome = as_wait_condition(yielded)
        except StopIteration:
            outcome = Done()
        except (Exception, SystemExit, KeyboardInterrupt) as e:
            # GeneratorExit is not caught: kill() relies on it.
            logger.warning("Task %s (%s) crashed", self.id, self.name, exc_info=True)
            outcome = Failed(_failure_message(e))

        self.apply(outcome)
        return outcome

    def apply(self, outcome: ResumeOutcome) -> None:
        if isinstance(outcome, WaitEvent):
            self.state, self.wait = TaskState.WAITING_EVENT, outcome
        elif isinstance(outcome, WaitTimer):
            self.state, self.wait = TaskState.WAITING_TIMER, outcome
        elif isinstance(outcome, Ready):
            self.state, self.wait = TaskState.READY, None
        elif isinstance(outcome, Done):
            self.state, self.wait = TaskState.DEAD, None
        elif isinstance(outcome, Failed):
            self.state, self.wait, self.error = TaskState.CRASHED, None, outcome.message

    def kill(self) -> None:
        """Force the task to DEAD, discarding whatever it was doing."""
        body, self.body = self.body, None
        self.state, self.wait = TaskState.DEAD, None
        if body is None:
            return
        try:
            body.close()
        except Exception:
            # A body that refuses GeneratorExit is still dead to us.
            logger.debug("Task %s (%s) raised while closing", self.id, self.name, exc_info=True)
