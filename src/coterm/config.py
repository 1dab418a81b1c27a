# src/coterm/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Everything has a usable default; no configuration is required to start.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List

ENV_PREFIX = "COTERM"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_file() -> None:
    """Load .env from the working directory (never overrides real env vars)."""
    from dotenv import find_dotenv, load_dotenv

    load_dotenv(find_dotenv(usecwd=True), override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    parts = [p.strip() for p in raw.replace(",", " ").split() if p.strip()]
    return parts


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _env_letter(name: str, default: str) -> str:
    raw = _env(name, default).strip()
    if len(raw) != 1 or not raw.isalpha():
        return default
    return raw.lower()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    log_console: bool
    data_dir: Path

    # ---- Scheduler ----
    tick_seconds: float
    default_program: str
    boot_programs: List[str]
    program_path: List[Path]

    # ---- Display ----
    status_bar: str
    focus_marker: str
    idle_label: str

    # ---- Hotkeys (Ctrl + letter) ----
    hotkey_new: str
    hotkey_next: str
    hotkey_prev: str
    hotkey_close: str

    @staticmethod
    def from_env(*, load_dotenv: bool = True) -> "Settings":
        if load_dotenv:
            _load_dotenv_file()

        app_name = _env(_k("APP_NAME"), "coterm") or "coterm"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        # Console logging would scribble over the curses screen; off by default.
        log_console = _env_bool(_k("LOG_CONSOLE"), False)
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/coterm"))

        # Upper bound on one blocking pull; timers are checked at least this often.
        tick_seconds = max(0.01, _env_float(_k("TICK_SECONDS"), 0.05))
        default_program = _env(_k("DEFAULT_PROGRAM"), "echo").strip() or "echo"
        boot_programs = _env_list(_k("BOOT_PROGRAMS"), [default_program])
        program_path = [Path(p).expanduser() for p in _env_list(_k("PROGRAM_PATH"), ["programs"])]

        status_bar = _env(_k("STATUS_BAR"), "bottom").strip().lower()
        if status_bar not in ("top", "bottom"):
            status_bar = "bottom"
        focus_marker = _env(_k("FOCUS_MARKER"), "*")[:1] or "*"
        idle_label = _env(_k("IDLE_LABEL"), "(no tasks)")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            log_console=log_console,
            data_dir=data_dir,
            tick_seconds=tick_seconds,
            default_program=default_program,
            boot_programs=boot_programs,
            program_path=program_path,
            status_bar=status_bar,
            focus_marker=focus_marker,
            idle_label=idle_label,
            hotkey_new=_env_letter(_k("HOTKEY_NEW"), "t"),
            hotkey_next=_env_letter(_k("HOTKEY_NEXT"), "n"),
            hotkey_prev=_env_letter(_k("HOTKEY_PREV"), "p"),
            hotkey_close=_env_letter(_k("HOTKEY_CLOSE"), "w"),
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Process-wide settings, read from the environment on first use."""
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
