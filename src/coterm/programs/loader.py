# src/coterm/programs/loader.py

"""
Program loader.

Resolves an identifier to a program callable, in order:
1. a registered program name ("clock", "echo", ...),
2. an entry point "package.module:function",
3. a Python file: as given, with ".py" appended, then under each directory of
   the search path. The file's `main` callable is the program.

Any failure is reported as ProgramLoadError; the caller never gets half a task.
"""

from __future__ import annotations

import importlib
import importlib.util
import itertools
import logging
from collections.abc import Sequence
from pathlib import Path

from ..core.errors import ProgramLoadError
from ..core.ports import Program
from .registry import ProgramRegistry, registry as default_registry

logger = logging.getLogger(__name__)

_module_counter = itertools.count(1)


def _is_entry_point(identifier: str) -> bool:
    module, sep, attr = identifier.rpartition(":")
    if not sep or not module or not attr:
        return False
    return all(part.isidentifier() for part in module.split(".") + attr.split("."))


class ModuleProgramLoader:
    def __init__(
        self,
        registry: ProgramRegistry | None = None,
        search_path: Sequence[str | Path] = (),
    ) -> None:
        if registry is None:
            # Importing the built-ins registers them.
            from . import builtin  # noqa: F401

            registry = default_registry
        self.registry = registry
        self.search_path = [Path(p) for p in search_path]

    def load(self, identifier: str) -> Program:
        ident = (identifier or "").strip()
        if not ident:
            raise ProgramLoadError(identifier, "empty program name")

        program = self.registry.get(ident)
        if program is not None:
            return program

        if _is_entry_point(ident):
            return self._load_entry_point(ident)

        path = self.find_file(ident)
        if path is not None:
            return self._load_file(ident, path)

        raise ProgramLoadError(ident, "program not found")

    def find_file(self, identifier: str) -> Path | None:
        candidates = [Path(identifier), Path(identifier + ".py")]
        for d in self.search_path:
            candidates.append(d / identifier)
            candidates.append(d / (identifier + ".py"))
        for c in candidates:
            if c.is_file():
                return c
        return None

    def _load_entry_point(self, identifier: str) -> Program:
        module_name, _, attr_path = identifier.rpartition(":")
        try:
            obj: object = importlib.import_module(module_name)
        except ImportError as e:
            raise ProgramLoadError(identifier, f"cannot import {module_name}: {e}") from e

        for attr in attr_path.split("."):
            try:
                obj = getattr(obj, attr)
            except AttributeError:
                raise ProgramLoadError(identifier, f"{module_name} has no attribute {attr_path}") from None

        if not callable(obj):
            raise ProgramLoadError(identifier, f"{attr_path} is not callable")
        logger.debug("Loaded entry point %s", identifier)
        return obj

    def _load_file(self, identifier: str, path: Path) -> Program:
        module_name = f"coterm_program_{path.stem.replace('-', '_')}_{next(_module_counter)}"
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise ProgramLoadError(identifier, f"cannot load {path}")
        module = importlib.util.module_from_spec(spec)
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            raise ProgramLoadError(identifier, f"{path}: {type(e).__name__}: {e}") from e

        main = getattr(module, "main", None)
        if not callable(main):
            raise ProgramLoadError(identifier, f"{path} defines no main()")
        logger.debug("Loaded program file %s", path)
        return main
