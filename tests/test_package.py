# tests/test_package.py

from __future__ import annotations

import importlib

import pytest


@pytest.mark.parametrize(
    "module",
    [
        "coterm",
        "coterm.config",
        "coterm.cli.main",
        "coterm.connectors.curses_host",
        "coterm.core.ports",
        "coterm.core.terminal",
        "coterm.programs.loader",
        "coterm.session.compositor",
        "coterm.tasks.task_api",
        "coterm.tasks.task_router",
        "coterm.tasks.task_scheduler",
    ],
)
def test_module_docstrings_are_visible(module: str) -> None:
    doc = importlib.import_module(module).__doc__
    assert doc is not None and doc.strip()
