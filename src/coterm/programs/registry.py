# src/coterm/programs/registry.py

from __future__ import annotations

from dataclasses import dataclass

from ..core.ports import Program


def _key(name: str) -> str:
    return name.strip().lower()


@dataclass(frozen=True, slots=True)
class ProgramEntry:
    name: str
    program: Program
    help_text: str
    aliases: tuple[str, ...] = ()


class ProgramRegistry:
    """Named programs the loader resolves before touching the filesystem."""

    def __init__(self) -> None:
        self._entries: dict[str, ProgramEntry] = {}
        self._aliases: dict[str, str] = {}

    def register(
        self,
        name: str,
        program: Program,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> ProgramEntry:
        entry = ProgramEntry(_key(name), program, help_text, tuple(_key(a) for a in aliases or ()))
        self._entries[entry.name] = entry
        for alias in entry.aliases:
            self._aliases[alias] = entry.name
        return entry

    def entry(self, name: str) -> ProgramEntry | None:
        key = _key(name)
        return self._entries.get(self._aliases.get(key, key))

    def get(self, name: str) -> Program | None:
        entry = self.entry(name)
        return entry.program if entry is not None else None

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.entry(name) is not None

    def names(self) -> list[str]:
        return list(self._entries)

    def build_help(self) -> str:
        lines = ["Available programs:"]
        lines.extend(f"  {e.name} - {e.help_text}" for e in self._entries.values())
        return "\n".join(lines)


registry = ProgramRegistry()
