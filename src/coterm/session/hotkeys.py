# src/coterm/session/hotkeys.py

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from enum import StrEnum

from ..core.events import KEY, KEY_UP, MODIFIER_KEYS, Event, Keys

logger = logging.getLogger(__name__)


class ChordAction(StrEnum):
    NEW_TASK = "new_task"
    FOCUS_NEXT = "focus_next"
    FOCUS_PREVIOUS = "focus_previous"
    CLOSE_FOCUSED = "close_focused"


DEFAULT_BINDINGS: dict[str, ChordAction] = {
    "t": ChordAction.NEW_TASK,
    "n": ChordAction.FOCUS_NEXT,
    "p": ChordAction.FOCUS_PREVIOUS,
    "w": ChordAction.CLOSE_FOCUSED,
}


def bindings_from_letters(letters: Mapping[str, ChordAction]) -> dict[int, ChordAction]:
    return {Keys.letter(ch): action for ch, action in letters.items()}


class HotkeyInterceptor:
    """
    Recognizes modifier+key chords from raw key / key_up events.

    Modifier state is tracked across events. A recognized chord is consumed,
    together with the key_up of its key; everything else (including the
    modifier presses themselves) passes through to the router.
    """

    def __init__(
        self,
        bindings: Mapping[int, ChordAction] | None = None,
        *,
        modifiers: Iterable[int] = MODIFIER_KEYS,
    ) -> None:
        self.bindings: dict[int, ChordAction] = (
            dict(bindings) if bindings is not None else bindings_from_letters(DEFAULT_BINDINGS)
        )
        self.modifiers = frozenset(modifiers)
        self._held: set[int] = set()
        self._swallow_up: set[int] = set()

    @property
    def modifier_held(self) -> bool:
        return bool(self._held)

    def reset(self) -> None:
        self._held.clear()
        self._swallow_up.clear()

    def intercept(self, event: Event) -> tuple[bool, ChordAction | None]:
        """
        Inspect one raw event.

        Returns (consumed, action). `action` is None for pass-through events and
        for the trailing key_up of an earlier chord, which is consumed silently.
        """
        if event.type not in (KEY, KEY_UP) or not event.args:
            return False, None
        code = event.args[0]

        if code in self.modifiers:
            if event.type == KEY:
                self._held.add(code)
            else:
                self._held.discard(code)
            return False, None

        if event.type == KEY_UP:
            if code in self._swallow_up:
                self._swallow_up.discard(code)
                return True, None
            return False, None

        if not self._held:
            return False, None
        action = self.bindings.get(code)
        if action is None:
            return False, None
        self._swallow_up.add(code)
        logger.debug("chord recognized: %s", action.value)
        return True, action


def bindings_from_settings(settings) -> dict[int, ChordAction]:
    """Chord bindings from the hotkey_* letters of Settings."""
    return bindings_from_letters(
        {
            settings.hotkey_new: ChordAction.NEW_TASK,
            settings.hotkey_next: ChordAction.FOCUS_NEXT,
            settings.hotkey_prev: ChordAction.FOCUS_PREVIOUS,
            settings.hotkey_close: ChordAction.CLOSE_FOCUSED,
        }
    )
