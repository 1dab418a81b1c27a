# src/coterm/cli/main.py

"""
CLI entrypoint.

Initializes logging, loads settings, then runs one session on the terminal:
- builds the curses host and the scheduler,
- spawns the boot programs (command line, else COTERM_BOOT_PROGRAMS),
- runs until every task has exited or the session is terminated.
"""

from __future__ import annotations

import argparse
import curses
import logging
import sys
from collections.abc import Sequence

from ..config import Settings, get_settings
from ..connectors.curses_host import CursesHost
from ..core.errors import ProgramLoadError
from ..logging_setup import setup_logging
from ..programs.loader import ModuleProgramLoader
from ..tasks.task_scheduler import Scheduler

logger = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="coterm",
        description="Run several cooperative programs in one terminal session.",
    )
    parser.add_argument(
        "programs",
        nargs="*",
        help="programs to start (built-in name, module:function or .py path)",
    )
    return parser.parse_args(argv)


def run_session(stdscr, settings: Settings, programs: Sequence[str]) -> int:
    """Run one session on an initialized curses screen. Returns the number of failed boots."""
    loader = ModuleProgramLoader(search_path=settings.program_path)
    host = CursesHost(stdscr, loader, mouse_row_offset=1 if settings.status_bar == "top" else 0)
    scheduler = Scheduler.from_settings(host, settings)

    failed = 0
    for program in programs:
        try:
            scheduler.spawn(program)
        except ProgramLoadError as e:
            failed += 1
            logger.error("%s", e)

    try:
        scheduler.run()
    finally:
        scheduler.shutdown()
    return failed


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)
    settings = get_settings()

    level_name = settings.log_level.upper()
    console_level = getattr(logging, level_name, logging.INFO)
    log_file = setup_logging(
        log_dir=settings.data_dir,
        app_name=settings.app_name,
        console_level=console_level,
        console=settings.log_console,
    )

    logger.info("Starting %s (log: %s)", settings.app_name, log_file)
    programs = list(args.programs) or list(settings.boot_programs)

    try:
        failed = curses.wrapper(run_session, settings, programs)
    except KeyboardInterrupt:
        logger.info("Interrupted.")
        failed = 0

    if failed:
        print(f"{failed} program(s) failed to load; see {log_file}", file=sys.stderr)
    logger.info("Bye.")
    sys.exit(1 if failed == len(programs) and programs else 0)


if __name__ == "__main__":
    main()
