# src/coterm/core/errors.py

from __future__ import annotations


class CotermError(Exception):
    """Base class for session manager errors."""


class ProgramLoadError(CotermError):
    """A program identifier could not be resolved. No task was created."""

    def __init__(self, identifier: str, reason: str) -> None:
        super().__init__(f"cannot load program {identifier!r}: {reason}")
        self.identifier = identifier
        self.reason = reason


class EventSourceError(CotermError):
    """The host event source failed. Fatal to the whole session."""


class UnknownTaskError(CotermError, KeyError):
    def __init__(self, task_id: int) -> None:
        super().__init__(f"no such task: {task_id}")
        self.task_id = task_id

    def __str__(self) -> str:
        return str(self.args[0])
