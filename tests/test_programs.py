# tests/test_programs.py

from __future__ import annotations

import pytest

from coterm.core.errors import ProgramLoadError
from coterm.core.events import Event, Keys
from coterm.programs import builtin
from coterm.programs.loader import ModuleProgramLoader
from coterm.programs.registry import ProgramRegistry
from coterm.tasks.task_scheduler import Scheduler

from .fakes import FakeClock, FakeHost, key


# ---- registry ----


def test_registry_resolves_names_and_aliases_case_insensitively() -> None:
    reg = ProgramRegistry()

    def prog(ctx):
        return None

    reg.register("Clock", prog, "tells time", aliases=["Time"])

    assert reg.get("clock") is prog
    assert reg.get(" TIME ") is prog
    assert "clock" in reg
    assert "nope" not in reg
    assert 42 not in reg
    assert reg.names() == ["clock"]


def test_registry_help_lists_primary_names_only() -> None:
    reg = ProgramRegistry()
    reg.register("a", lambda ctx: None, "first", aliases=["x"])
    reg.register("b", lambda ctx: None, "second")

    text = reg.build_help()
    assert text.splitlines() == ["Available programs:", "  a - first", "  b - second"]


# ---- loader ----


def test_loader_resolves_builtins() -> None:
    loader = ModuleProgramLoader()
    assert loader.load("clock") is builtin.clock
    assert loader.load("shell") is builtin.echo
    assert loader.load("ps") is builtin.tasks


def test_loader_resolves_entry_points() -> None:
    loader = ModuleProgramLoader(ProgramRegistry())
    assert loader.load("coterm.programs.builtin:clock") is builtin.clock


@pytest.mark.parametrize(
    ("identifier", "reason"),
    [
        ("no_such_module_for_coterm:main", "cannot import"),
        ("coterm.programs.builtin:nope", "no attribute"),
        ("coterm.programs.builtin:registry", "not callable"),
    ],
)
def test_loader_entry_point_errors(identifier: str, reason: str) -> None:
    loader = ModuleProgramLoader(ProgramRegistry())
    with pytest.raises(ProgramLoadError) as exc:
        loader.load(identifier)
    assert reason in exc.value.reason
    assert exc.value.identifier == identifier


def test_loader_reads_main_from_file(tmp_path) -> None:
    path = tmp_path / "hello.py"
    path.write_text("def main(ctx, *args):\n    ctx.print('hello ' + ' '.join(args))\n", encoding="utf-8")

    loader = ModuleProgramLoader(ProgramRegistry(), search_path=[tmp_path])

    assert callable(loader.load(str(path)))
    assert callable(loader.load("hello"))
    assert loader.find_file("hello") == tmp_path / "hello.py"


def test_loaded_file_runs_as_task(tmp_path) -> None:
    (tmp_path / "greet.py").write_text(
        "def main(ctx, who='world'):\n"
        "    ctx.print('hi ' + who)\n"
        "    yield from ctx.await_event('never')\n",
        encoding="utf-8",
    )
    loader = ModuleProgramLoader(ProgramRegistry(), search_path=[tmp_path])
    host = FakeHost()
    host.load_program = loader.load  # type: ignore[method-assign]
    scheduler = Scheduler(host, clock=FakeClock())

    task_id = scheduler.spawn("greet", ("there",))

    assert scheduler.get_task(task_id).name == "greet"
    assert scheduler.get_task(task_id).vt.get_line(1)[0].startswith("hi there")


def test_loader_file_without_main(tmp_path) -> None:
    (tmp_path / "nomain.py").write_text("x = 1\n", encoding="utf-8")
    loader = ModuleProgramLoader(ProgramRegistry(), search_path=[tmp_path])
    with pytest.raises(ProgramLoadError, match="defines no main"):
        loader.load("nomain")


def test_loader_file_with_syntax_error(tmp_path) -> None:
    (tmp_path / "broken.py").write_text("def main(:\n", encoding="utf-8")
    loader = ModuleProgramLoader(ProgramRegistry(), search_path=[tmp_path])
    with pytest.raises(ProgramLoadError, match="SyntaxError"):
        loader.load("broken")


@pytest.mark.parametrize("identifier", ["", "   ", "definitely_not_a_program"])
def test_loader_unknown(identifier: str, tmp_path) -> None:
    loader = ModuleProgramLoader(ProgramRegistry(), search_path=[tmp_path])
    with pytest.raises(ProgramLoadError):
        loader.load(identifier)


# ---- built-in programs ----


@pytest.fixture()
def session() -> Scheduler:
    return Scheduler(FakeHost(size=(60, 20)), clock=FakeClock())


def test_echo_types_and_edits(session: Scheduler) -> None:
    task_id = session.spawn(builtin.echo)
    vt = session.get_task(task_id).vt
    assert vt.get_cursor_blink() is True

    for ch in "abc":
        session.step(Event.of("char", ch))
    session.step(key(Keys.BACKSPACE))
    session.step(key(Keys.ENTER))
    session.step(Event.of("paste", "pasted"))

    assert vt.get_line(1)[0].startswith("ab ")
    assert vt.get_line(2)[0].startswith("pasted")


def test_echo_prints_its_arguments(session: Scheduler) -> None:
    task_id = session.spawn(builtin.echo, ("hello", "there"))
    vt = session.get_task(task_id).vt
    assert vt.get_line(1)[0].startswith("hello there")
    assert vt.get_cursor_pos() == (1, 2)


def test_clock_redraws_on_its_interval() -> None:
    clock = FakeClock()
    scheduler = Scheduler(FakeHost(), clock=clock)
    task_id = scheduler.spawn(builtin.clock, ("2",))
    task = scheduler.get_task(task_id)

    assert task.vt.get_line(2)[0].startswith(" Clock: ")
    assert task.deadline == pytest.approx(clock.now + 2.0)

    clock.advance(2.5)
    scheduler.step(None)
    assert task.resumes == 2


def test_tasks_program_shows_the_ring(session: Scheduler) -> None:
    session.spawn(builtin.echo, name="editor")
    task_id = session.spawn(builtin.tasks, name="ps")

    text = "\n".join(row for row, _, _ in session.get_task(task_id).vt.lines())
    assert "editor" in text
    assert "ps" in text


def test_help_lists_programs_and_exits_on_key(session: Scheduler) -> None:
    task_id = session.spawn(builtin.show_help)
    text = "\n".join(row for row, _, _ in session.get_task(task_id).vt.lines())
    assert "Available programs:" in text
    assert "Press any key to close." in text

    assert session.step(key(Keys.SPACE)) is False
    assert session.ring == ()


def test_registry_entry_keeps_aliases() -> None:
    reg = ProgramRegistry()
    reg.register("Tasks", lambda ctx: None, "list tasks", aliases=["PS", "list"])

    entry = reg.entry("ps")
    assert entry is not None
    assert entry.name == "tasks"
    assert entry.aliases == ("ps", "list")
    assert reg.names() == ["tasks"]
