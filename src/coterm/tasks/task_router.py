# src/coterm/tasks/task_router.py

"""
Event router.

Decides, for one poll cycle, which tasks are resumed and with which event:

1. A due timer is delivered to its owner as ("timer", id) regardless of the
   event pulled this cycle, if the owner is waiting for it.
2. Otherwise a task waiting for an event gets the pulled event when its filter
   is absent or equals the event type.
3. Input-class events only ever reach the focused task.
4. Other events reach every matching task, in ring order.

Each task is resumed at most once per cycle. Routing is pure: the scheduler
executes the returned plan.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from ..core.events import TIMER, Event
from .task_models import Task, TimerEntry, WaitTimer

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Delivery:
    task_id: int
    event: Event
    timer_id: int | None = None


@dataclass(slots=True)
class RoutingPlan:
    deliveries: list[Delivery] = field(default_factory=list)
    # Timers to discard: delivered, or due while nobody listened for them.
    fired_timers: list[int] = field(default_factory=list)

    @property
    def task_ids(self) -> list[int]:
        return [d.task_id for d in self.deliveries]


def timer_event(timer_id: int) -> Event:
    return Event(TIMER, (timer_id,))


class EventRouter:
    def route(
        self,
        event: Event | None,
        tasks: Sequence[Task],
        focused_id: int | None,
        timers: Iterable[TimerEntry],
        now: float,
    ) -> RoutingPlan:
        """
        Build the delivery plan for one cycle.

        `tasks` must be in ring order. `event` is None when the host pull timed
        out; timers are still checked.
        """
        plan = RoutingPlan()

        due: dict[int, list[TimerEntry]] = defaultdict(list)
        for entry in sorted(timers, key=lambda t: (t.deadline, t.timer_id)):
            if now >= entry.deadline:
                due[entry.owner_id].append(entry)

        for task in tasks:
            owned = due.pop(task.id, [])
            if not task.alive or task.wait is None:
                plan.fired_timers.extend(e.timer_id for e in owned)
                continue

            delivery = self._timer_delivery(task, owned, plan)
            if delivery is None:
                delivery = self._event_delivery(task, event, focused_id)
            if delivery is not None:
                plan.deliveries.append(delivery)

        # Due timers whose owner is no longer in the ring.
        for entries in due.values():
            plan.fired_timers.extend(e.timer_id for e in entries)

        if plan.deliveries:
            logger.debug(
                "route event=%s -> tasks=%s",
                event.type if event is not None else None,
                plan.task_ids,
            )
        return plan

    @staticmethod
    def _timer_delivery(task: Task, owned: list[TimerEntry], plan: RoutingPlan) -> Delivery | None:
        wait = task.wait
        if wait is None:
            plan.fired_timers.extend(e.timer_id for e in owned)
            return None
        chosen: Delivery | None = None
        for entry in owned:
            ev = timer_event(entry.timer_id)
            if not wait.accepts(ev):
                plan.fired_timers.append(entry.timer_id)
            elif chosen is None:
                chosen = Delivery(task.id, ev, entry.timer_id)
                plan.fired_timers.append(entry.timer_id)
            # Further accepted timers stay pending for the next cycle.
        return chosen

    @staticmethod
    def _event_delivery(task: Task, event: Event | None, focused_id: int | None) -> Delivery | None:
        wait = task.wait
        if event is None or wait is None or isinstance(wait, WaitTimer):
            return None
        if not wait.accepts(event):
            return None
        if event.is_input and task.id != focused_id:
            return None
        return Delivery(task.id, event)
