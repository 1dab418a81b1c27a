# src/coterm/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class SessionState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"


@dataclass(frozen=True, slots=True)
class TaskInfo:
    id: int
    name: str
    state: str
    filter: str | None = None
    deadline: float | None = None
    error: str | None = None
    focused: bool = False


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """
    Read-only view of the session for external inspection (e.g. a task list).

    `tasks` is in ring order.
    """

    state: SessionState
    tasks: tuple[TaskInfo, ...]
    focused_id: int | None

    @property
    def order(self) -> tuple[int, ...]:
        return tuple(t.id for t in self.tasks)

    def get(self, task_id: int) -> TaskInfo | None:
        for t in self.tasks:
            if t.id == task_id:
                return t
        return None

    def format_table(self) -> str:
        lines = [f"{'ID':>4}  {'NAME':<16} STATE"]
        for t in self.tasks:
            mark = "*" if t.focused else " "
            state = t.state
            if t.filter:
                state = f"{state}({t.filter})"
            elif t.error:
                state = f"{state}: {t.error}"
            lines.append(f"{t.id:>4}{mark} {t.name[:16]:<16} {state}")
        return "\n".join(lines)
