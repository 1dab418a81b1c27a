# tests/conftest.py

from __future__ import annotations

import pytest

from coterm.tasks.task_scheduler import Scheduler

from .fakes import FakeClock, FakeHost, Recorder


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def host() -> FakeHost:
    """20x6 display: task terminals are 20x5, the status bar is row 6."""
    return FakeHost()


@pytest.fixture()
def scheduler(host: FakeHost, clock: FakeClock) -> Scheduler:
    """
    Scheduler wired to the fake host and clock.

    NOTE: tick_seconds is irrelevant here because tests drive cycles with
    step(...) directly, or use a scripted host with run().
    """
    return Scheduler(host, clock=clock, tick_seconds=0.05, default_program="waiter")


@pytest.fixture()
def recorder() -> Recorder:
    return Recorder()
