# src/coterm/session/compositor.py

"""
Compositor.

Copies the focused task's virtual terminal onto the real display and draws a
one-line status bar listing every task in ring order. Background terminals
are never read. Rows are only re-sent when they differ from the previous
frame, so a quiet session costs almost no host I/O.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ..core.ports import RawDisplay
from ..core.terminal import Colour, to_blit
from ..tasks.task_models import Task, TaskState

logger = logging.getLogger(__name__)

Row = tuple[str, str, str]


def status_entries(ring: Sequence[Task], focused_id: int | None, *, marker: str = "*") -> list[tuple[str, Task]]:
    return [(f"[{marker if t.id == focused_id else ''}{t.name}]", t) for t in ring]


class Compositor:
    def __init__(
        self,
        display: RawDisplay,
        *,
        status_bar: str = "bottom",
        focus_marker: str = "*",
        idle_label: str = "(no tasks)",
        bar_text_color: int = Colour.BLACK,
        bar_background_color: int = Colour.LIGHT_GRAY,
        crashed_color: int = Colour.RED,
    ) -> None:
        if status_bar not in ("top", "bottom"):
            raise ValueError(f"status_bar must be 'top' or 'bottom', got {status_bar!r}")
        self.display = display
        self.status_bar = status_bar
        self.focus_marker = focus_marker
        self.idle_label = idle_label
        self.bar_fg = to_blit(bar_text_color)
        self.bar_bg = to_blit(bar_background_color)
        self.crashed_fg = to_blit(crashed_color)

        self.width, self.height = display.get_size()
        self._frame: dict[int, Row] = {}
        self.rows_written = 0

    # ---- geometry ----

    @property
    def status_row(self) -> int:
        return 1 if self.status_bar == "top" else self.height

    @property
    def vt_origin(self) -> int:
        """Display row where VT row 1 is drawn."""
        return 2 if self.status_bar == "top" else 1

    def vt_size(self) -> tuple[int, int]:
        """Size a task terminal should have: the display minus the status row."""
        return self.width, max(1, self.height - 1)

    def resize(self, width: int, height: int) -> None:
        self.width, self.height = max(1, int(width)), max(1, int(height))
        self.invalidate()
        logger.debug("compositor resized to %sx%s", self.width, self.height)

    def invalidate(self) -> None:
        """Forget the previous frame; the next render redraws every row."""
        self._frame.clear()

    # ---- rendering ----

    def build_status_bar(self, ring: Sequence[Task], focused_id: int | None) -> Row:
        if not ring:
            text = self.idle_label
            fg = self.bar_fg * len(text)
        else:
            parts: list[str] = []
            fgs: list[str] = []
            for i, (label, task) in enumerate(status_entries(ring, focused_id, marker=self.focus_marker)):
                if i:
                    parts.append(" ")
                    fgs.append(self.bar_fg)
                colour = self.crashed_fg if task.state == TaskState.CRASHED else self.bar_fg
                parts.append(label)
                fgs.append(colour * len(label))
            text, fg = "".join(parts), "".join(fgs)

        text, fg = text[: self.width], fg[: self.width]
        pad = self.width - len(text)
        return text + " " * pad, fg + self.bar_fg * pad, self.bar_bg * self.width

    def _vt_rows(self, focused: Task | None) -> dict[int, Row]:
        rows: dict[int, Row] = {}
        _, area = self.vt_size()
        blank: Row = (" " * self.width, to_blit(Colour.WHITE) * self.width, to_blit(Colour.BLACK) * self.width)

        lines = list(focused.vt.lines()) if focused is not None else []
        for i in range(area):
            row = self.vt_origin + i
            if i >= len(lines):
                rows[row] = blank
                continue
            text, fg, bg = (part[: self.width] for part in lines[i])
            pad = self.width - len(text)
            if pad:
                text += " " * pad
                fg += to_blit(Colour.WHITE) * pad
                bg += to_blit(Colour.BLACK) * pad
            rows[row] = (text, fg, bg)
        return rows

    def render(self, focused: Task | None, ring: Sequence[Task]) -> int:
        """
        Draw one frame. Returns the number of display rows actually written.
        """
        focused_id = focused.id if focused is not None else None
        rows = self._vt_rows(focused)
        if self.height > 1 or not rows:
            rows[self.status_row] = self.build_status_bar(ring, focused_id)

        written = 0
        for row in sorted(rows):
            if not 1 <= row <= self.height:
                continue
            line = rows[row]
            if self._frame.get(row) == line:
                continue
            self.display.set_cursor_pos(1, row)
            self.display.blit(*line)
            self._frame[row] = line
            written += 1

        if focused is not None:
            cx, cy = focused.vt.get_cursor_pos()
            self.display.set_cursor_pos(cx, self.vt_origin + cy - 1)
            self.display.set_cursor_blink(focused.vt.get_cursor_blink())
        else:
            self.display.set_cursor_blink(False)
        self.display.flush()

        self.rows_written += written
        return written
