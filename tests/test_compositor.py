# tests/test_compositor.py

from __future__ import annotations

import pytest

from coterm.core.terminal import VirtualTerminal
from coterm.session.compositor import Compositor
from coterm.tasks.task_models import Task, TaskState

from .fakes import FakeDisplay


def _task(task_id: int, name: str, text: str = "", *, width: int = 20, height: int = 5) -> Task:
    vt = VirtualTerminal(width, height)
    if text:
        vt.write(text)
    return Task(id=task_id, name=name, vt=vt)


@pytest.fixture()
def display() -> FakeDisplay:
    return FakeDisplay(20, 6)


def test_only_focused_terminal_is_drawn(display: FakeDisplay) -> None:
    a = _task(1, "a", "alpha here")
    b = _task(2, "b", "bravo here")
    comp = Compositor(display)

    comp.render(a, [a, b])

    assert display.row_text(1).startswith("alpha here")
    assert not any("bravo" in display.row_text(y) for y in range(1, 7))


def test_status_bar_lists_ring_with_focus_marker(display: FakeDisplay) -> None:
    a, b = _task(1, "a"), _task(2, "b")
    comp = Compositor(display)

    comp.render(a, [a, b])

    assert display.row_text(6) == "[*a] [b]".ljust(20)
    text, fg, bg = display.rows[6]
    assert set(fg) == {"f"}
    assert set(bg) == {"8"}


def test_crashed_entries_are_red(display: FakeDisplay) -> None:
    a, b = _task(1, "a"), _task(2, "b")
    b.state = TaskState.CRASHED
    comp = Compositor(display)

    comp.render(a, [a, b])

    text, fg, _ = display.rows[6]
    start = text.index("[b]")
    assert fg[start : start + 3] == "eee"
    assert fg[:4] == "ffff"


def test_status_bar_is_truncated_to_width() -> None:
    display = FakeDisplay(10, 3)
    tasks = [_task(i, f"task{i}", width=10, height=2) for i in range(1, 4)]
    comp = Compositor(display)

    comp.render(tasks[0], tasks)

    assert display.row_text(3) == "[*task1] ["
    assert len(display.rows[3][1]) == 10


def test_unchanged_frame_writes_nothing(display: FakeDisplay) -> None:
    a = _task(1, "a", "hello")
    comp = Compositor(display)

    assert comp.render(a, [a]) == 6
    display.written_rows.clear()

    assert comp.render(a, [a]) == 0
    assert display.written_rows == []

    a.vt.set_cursor_pos(1, 3)
    a.vt.write("changed")
    assert comp.render(a, [a]) == 1
    assert display.written_rows == [3]


def test_focus_change_redraws_only_differing_rows(display: FakeDisplay) -> None:
    a = _task(1, "a", "same")
    b = _task(2, "b", "same")
    comp = Compositor(display)
    comp.render(a, [a, b])
    display.written_rows.clear()

    comp.render(b, [a, b])

    # Identical terminal content, only the status bar moved its marker.
    assert display.written_rows == [6]


def test_invalidate_forces_full_redraw(display: FakeDisplay) -> None:
    a = _task(1, "a")
    comp = Compositor(display)
    comp.render(a, [a])
    comp.invalidate()
    assert comp.render(a, [a]) == 6


def test_rows_stay_inside_display(display: FakeDisplay) -> None:
    big = _task(1, "big", "x" * 40, width=40, height=12)
    comp = Compositor(display)

    comp.render(big, [big])

    assert all(1 <= y <= 6 for y in display.written_rows)
    assert all(len(row[0]) == 20 for row in display.rows.values())


def test_idle_session_shows_idle_label(display: FakeDisplay) -> None:
    comp = Compositor(display, idle_label="nothing running")

    comp.render(None, [])

    assert display.row_text(6) == "nothing running".ljust(20)
    assert display.row_text(1) == " " * 20
    assert display.blink is False


def test_top_status_bar_shifts_terminal_down(display: FakeDisplay) -> None:
    a = _task(1, "a", "first row")
    a.vt.set_cursor_pos(4, 2)
    comp = Compositor(display, status_bar="top")

    comp.render(a, [a])

    assert display.row_text(1).startswith("[*a]")
    assert display.row_text(2).startswith("first row")
    assert display.cursor == (4, 3)


def test_cursor_follows_focused_terminal(display: FakeDisplay) -> None:
    a = _task(1, "a")
    a.vt.set_cursor_pos(5, 4)
    a.vt.set_cursor_blink(True)
    comp = Compositor(display)

    comp.render(a, [a])

    assert display.cursor == (5, 4)
    assert display.blink is True
    assert display.flushes == 1


def test_geometry_and_resize(display: FakeDisplay) -> None:
    comp = Compositor(display)
    assert comp.vt_size() == (20, 5)
    assert comp.status_row == 6

    comp.resize(30, 10)
    assert comp.vt_size() == (30, 9)
    assert comp.status_row == 10


def test_rejects_unknown_status_bar_position(display: FakeDisplay) -> None:
    with pytest.raises(ValueError):
        Compositor(display, status_bar="left")
