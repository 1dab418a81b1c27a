# src/coterm/tasks/task_scheduler.py

"""
Task scheduler.

A single-threaded loop that, every cycle:
- pulls one event from the host (bounded by the next timer deadline),
- lets the hotkey interceptor consume session chords,
- routes the event and any due timers to waiting tasks (ring order),
- reaps finished tasks,
- asks the compositor to draw the focused task.

The scheduler owns every Task (an arena keyed by id) and the focus ring
(a list of ids). Tasks only ever see the HostServices handed to them.
"""

from __future__ import annotations

import inspect
import logging
import time
from collections.abc import Callable, Sequence
from pathlib import PurePath
from typing import Any

from ..core.errors import EventSourceError, ProgramLoadError, UnknownTaskError
from ..core.events import RESIZE, TERMINATE, Event
from ..core.ports import Host, Program
from ..core.state import SessionSnapshot, SessionState, TaskInfo
from ..core.terminal import Colour, VirtualTerminal, print_text
from ..session.compositor import Compositor
from ..session.hotkeys import ChordAction, HotkeyInterceptor, bindings_from_settings
from .task_api import HostServices, TaskContext
from .task_models import Done, Failed, ResumeOutcome, Task, TaskState, TimerEntry
from .task_router import EventRouter

logger = logging.getLogger(__name__)


def _task_body(program: Program, ctx: TaskContext, args: tuple[Any, ...]):
    """
    Wrap any program callable into a generator body.

    Generator functions are delegated to; plain callables run to completion
    inside the first resume.
    """
    result = program(ctx, *args)
    if inspect.isgenerator(result):
        return (yield from result)
    return result


def display_name(identifier: str) -> str:
    """Short status-bar label for a program identifier ("pkg.mod:main" -> "main")."""
    name = identifier.strip()
    _, sep, tail = name.rpartition(":")
    if sep and tail and "/" not in tail and "\\" not in tail:
        name = tail
    name = PurePath(name).name or name
    if name.endswith(".py"):
        name = name[: -len(".py")]
    return name or "task"


class Scheduler:
    def __init__(
        self,
        host: Host,
        *,
        compositor: Compositor | None = None,
        hotkeys: HotkeyInterceptor | None = None,
        router: EventRouter | None = None,
        clock: Callable[[], float] = time.monotonic,
        tick_seconds: float = 0.05,
        default_program: str = "echo",
    ) -> None:
        self.host = host
        self.clock = clock
        self.compositor = compositor if compositor is not None else Compositor(host.display)
        self.hotkeys = hotkeys if hotkeys is not None else HotkeyInterceptor()
        self.router = router if router is not None else EventRouter()
        self.tick_seconds = max(0.0, float(tick_seconds))
        self.default_program = default_program

        self._tasks: dict[int, Task] = {}
        self._ring: list[int] = []
        self._focus = 0
        self._timers: dict[int, TimerEntry] = {}
        self._next_task_id = 1
        self._next_timer_id = 1
        self.cycles = 0

        self._services = HostServices(
            clock=self.clock,
            start_timer=self.start_timer,
            cancel_timer=self._cancel_owned_timer,
            spawn=self.spawn,
            list_tasks=self.snapshot,
            host=host,
        )

    @classmethod
    def from_settings(cls, host: Host, settings, **kwargs: Any) -> Scheduler:
        compositor = Compositor(
            host.display,
            status_bar=settings.status_bar,
            focus_marker=settings.focus_marker,
            idle_label=settings.idle_label,
        )
        return cls(
            host,
            compositor=compositor,
            hotkeys=HotkeyInterceptor(bindings_from_settings(settings)),
            tick_seconds=settings.tick_seconds,
            default_program=settings.default_program,
            **kwargs,
        )

    # ---- inspection ----

    @property
    def ring(self) -> tuple[int, ...]:
        return tuple(self._ring)

    @property
    def focus_index(self) -> int | None:
        return self._focus if self._ring else None

    @property
    def focused_id(self) -> int | None:
        return self._ring[self._focus] if self._ring else None

    @property
    def focused_task(self) -> Task | None:
        fid = self.focused_id
        return self._tasks[fid] if fid is not None else None

    @property
    def state(self) -> SessionState:
        return SessionState.RUNNING if self._ring else SessionState.IDLE

    def get_task(self, task_id: int) -> Task:
        try:
            return self._tasks[task_id]
        except KeyError:
            raise UnknownTaskError(task_id) from None

    def tasks(self) -> list[Task]:
        """Live ring members, in ring order."""
        return [self._tasks[i] for i in self._ring]

    def pending_timers(self) -> list[TimerEntry]:
        return sorted(self._timers.values(), key=lambda t: (t.deadline, t.timer_id))

    def snapshot(self) -> SessionSnapshot:
        fid = self.focused_id
        infos = tuple(
            TaskInfo(
                id=t.id,
                name=t.name,
                state=t.state.value,
                filter=t.filter,
                deadline=t.deadline,
                error=t.error,
                focused=t.id == fid,
            )
            for t in self.tasks()
        )
        return SessionSnapshot(state=self.state, tasks=infos, focused_id=fid)

    # ---- lifecycle ----

    def spawn(self, program: str | Program, args: Sequence[Any] = (), *, name: str | None = None) -> int:
        """
        Create a task, append it to the ring, focus it and resume it once.

        Raises ProgramLoadError if `program` cannot be resolved; no task is
        created in that case.
        """
        if isinstance(program, str):
            identifier = program
            try:
                fn = self.host.load_program(identifier)
            except ProgramLoadError:
                raise
            except Exception as e:
                raise ProgramLoadError(identifier, str(e) or type(e).__name__) from e
            label = name or display_name(identifier)
        else:
            fn = program
            label = name or getattr(program, "__name__", "task")

        task_id = self._next_task_id
        self._next_task_id += 1

        width, height = self.compositor.vt_size()
        task = Task(
            id=task_id,
            name=label,
            vt=VirtualTerminal(width, height),
            args=tuple(args),
            created_at=self.clock(),
        )
        ctx = TaskContext(task, self._services)
        task.body = _task_body(fn, ctx, task.args)

        self._tasks[task_id] = task
        self._ring.append(task_id)
        self._focus = len(self._ring) - 1
        logger.info("Spawned task %s (%s)", task_id, label)

        self._after_resume(task, task.resume(None))
        return task_id

    def close(self, task_id: int) -> None:
        """Kill a task immediately, without waiting for a suspension point, and reap it."""
        task = self.get_task(task_id)
        task.kill()
        logger.info("Closed task %s (%s)", task.id, task.name)
        self.reap()

    def shutdown(self) -> None:
        """Close every task; the session becomes idle."""
        for task_id in list(self._ring):
            self._tasks[task_id].kill()
        self.reap()
        self.hotkeys.reset()
        logger.info("Session shut down")

    def reap(self) -> list[int]:
        """
        Remove terminal tasks from the ring.

        DEAD tasks go at once. CRASHED tasks stay (their terminal shows the error)
        until they have been on screen and focus has moved away.
        """
        reaped: list[int] = []
        i = 0
        while i < len(self._ring):
            task = self._tasks[self._ring[i]]
            if not self._reapable(task, i):
                i += 1
                continue
            del self._ring[i]
            del self._tasks[task.id]
            self._drop_timers(task.id)
            if i < self._focus:
                self._focus -= 1
            reaped.append(task.id)
            logger.info("Reaped task %s (%s, %s)", task.id, task.name, task.state.value)

        if self._ring:
            self._focus %= len(self._ring)
        else:
            self._focus = 0
        return reaped

    def _reapable(self, task: Task, index: int) -> bool:
        if task.state == TaskState.DEAD:
            return True
        if task.state == TaskState.CRASHED:
            return task.seen_crashed and index != self._focus
        return False

    def _after_resume(self, task: Task, outcome: ResumeOutcome) -> None:
        if isinstance(outcome, Failed):
            task.seen_crashed = task.id == self.focused_id
            vt = task.vt
            vt.set_text_color(Colour.RED)
            print_text(vt, f"[task error] {task.name}: {outcome.message}")
            self._drop_timers(task.id)
        elif isinstance(outcome, Done):
            logger.info("Task %s (%s) finished", task.id, task.name)
            self._drop_timers(task.id)

    # ---- focus ----

    def focus(self, task_id: int) -> None:
        try:
            index = self._ring.index(task_id)
        except ValueError:
            raise UnknownTaskError(task_id) from None
        self._set_focus(index)

    def focus_next(self) -> None:
        if self._ring:
            self._set_focus((self._focus + 1) % len(self._ring))

    def focus_previous(self) -> None:
        if self._ring:
            self._set_focus((self._focus - 1) % len(self._ring))

    def _set_focus(self, index: int) -> None:
        self._focus = index
        logger.debug("Focus -> task %s", self.focused_id)
        # A crashed task that was just cycled out disappears here.
        self.reap()

    # ---- timers ----

    def start_timer(self, owner_id: int, seconds: float) -> tuple[int, float]:
        if owner_id not in self._tasks:
            raise UnknownTaskError(owner_id)
        timer_id = self._next_timer_id
        self._next_timer_id += 1
        deadline = self.clock() + max(0.0, float(seconds))
        self._timers[timer_id] = TimerEntry(timer_id=timer_id, deadline=deadline, owner_id=owner_id)
        return timer_id, deadline

    def cancel_timer(self, timer_id: int) -> bool:
        return self._timers.pop(timer_id, None) is not None

    def _cancel_owned_timer(self, owner_id: int, timer_id: int) -> bool:
        entry = self._timers.get(timer_id)
        if entry is None or entry.owner_id != owner_id:
            return False
        del self._timers[timer_id]
        return True

    def _drop_timers(self, owner_id: int) -> None:
        for timer_id in [t.timer_id for t in self._timers.values() if t.owner_id == owner_id]:
            del self._timers[timer_id]

    def _pull_timeout(self) -> float:
        timeout = self.tick_seconds
        if self._timers:
            nearest = min(t.deadline for t in self._timers.values())
            timeout = min(timeout, max(0.0, nearest - self.clock()))
        return timeout

    # ---- main loop ----

    def step(self, event: Event | None) -> bool:
        """
        Run one cycle for an already-pulled event (None = no event this cycle).

        Returns False once the session is idle or was terminated.
        """
        self.cycles += 1

        if event is not None:
            if event.type == TERMINATE:
                logger.info("Terminate event received")
                self.shutdown()
                self._render()
                return False

            consumed, action = self.hotkeys.intercept(event)
            if consumed:
                if action is not None:
                    self._apply_chord(action)
                event = None
            elif event.type == RESIZE:
                self._handle_resize()

        self._dispatch(event)
        self.reap()
        self._render()
        return bool(self._ring)

    def run(self) -> None:
        """
        Drive the session until the ring is empty or a terminate event arrives.

        A failing event source is fatal: every task is closed and
        EventSourceError is raised.
        """
        logger.info("Session running with %d task(s)", len(self._ring))
        self.reap()
        self._render()

        while self._ring:
            try:
                event = self.host.pull_event(self._pull_timeout())
            except Exception as e:
                logger.critical("Event source failed; aborting session", exc_info=True)
                self.shutdown()
                raise EventSourceError(str(e) or type(e).__name__) from e

            if not self.step(event):
                break

        logger.info("Session idle after %d cycle(s)", self.cycles)

    def _dispatch(self, event: Event | None) -> None:
        plan = self.router.route(event, self.tasks(), self.focused_id, self._timers.values(), self.clock())
        for timer_id in plan.fired_timers:
            self._timers.pop(timer_id, None)

        for delivery in plan.deliveries:
            task = self._tasks.get(delivery.task_id)
            # Another task may have closed this one earlier in the cycle.
            if task is None or not task.alive:
                continue
            self._after_resume(task, task.resume(delivery.event))

    def _apply_chord(self, action: ChordAction) -> None:
        logger.debug("Chord %s", action.value)
        if action == ChordAction.NEW_TASK:
            try:
                self.spawn(self.default_program)
            except ProgramLoadError as e:
                logger.warning("New task failed: %s", e)
        elif action == ChordAction.FOCUS_NEXT:
            self.focus_next()
        elif action == ChordAction.FOCUS_PREVIOUS:
            self.focus_previous()
        elif action == ChordAction.CLOSE_FOCUSED:
            fid = self.focused_id
            if fid is not None:
                self.close(fid)

    def _handle_resize(self) -> None:
        width, height = self.host.query_display_size()
        self.compositor.resize(width, height)
        vw, vh = self.compositor.vt_size()
        for task in self._tasks.values():
            old = task.vt
            vt = VirtualTerminal(
                vw,
                vh,
                text_color=old.get_text_color(),
                background_color=old.get_background_color(),
            )
            vt.set_cursor_blink(old.get_cursor_blink())
            vt.write(f"[resized to {vw}x{vh}]")
            vt.set_cursor_pos(1, 2)
            if task.state == TaskState.CRASHED:
                vt.set_text_color(Colour.RED)
                print_text(vt, f"[task error] {task.name}: {task.error}")
            task.vt = vt
        logger.info("Display resized to %sx%s; %d terminal(s) rebuilt", width, height, len(self._tasks))

    def _render(self) -> None:
        focused = self.focused_task
        if focused is not None and focused.state == TaskState.CRASHED:
            focused.seen_crashed = True
        self.compositor.render(focused, self.tasks())
