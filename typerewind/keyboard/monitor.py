"""System-wide keyboard and pointer monitoring via pynput."""

import re
import time
import logging
import threading
from typing import Any, Callable, FrozenSet, Optional, Set, Tuple

from ..models.events import InputEvent, InputKind

logger = logging.getLogger(__name__)

# pynput key names, normalized to one name per modifier
MODIFIER_KEYS = {
    "shift": "shift", "shift_l": "shift", "shift_r": "shift",
    "ctrl": "ctrl", "ctrl_l": "ctrl", "ctrl_r": "ctrl",
    "alt": "alt", "alt_l": "alt", "alt_r": "alt", "alt_gr": "alt",
    "cmd": "cmd", "cmd_l": "cmd", "cmd_r": "cmd",
}

# Keys that move the caret or leave the line, so earlier keystrokes can no
# longer be undone one character at a time
RESET_KEYS = {
    "up", "down", "left", "right",
    "home", "end", "page_up", "page_down",
    "esc", "delete", "enter", "tab",
}

FUNCTION_KEY = re.compile(r"^f([1-9]|1[0-9]|20)$")

# Chords with these held are shortcuts, not text
SHORTCUT_MODIFIERS = frozenset({"ctrl", "cmd"})


def classify_key(key: Any, modifiers: FrozenSet[str] = frozenset()) -> Optional[Tuple[InputKind, str]]:
    """Decide what a key press means for the undo history.

    Args:
        key: pynput ``Key`` or ``KeyCode`` (anything with ``name`` or ``char``)
        modifiers: Normalized modifiers held during the press

    Returns:
        (kind, characters), or None for presses that don't matter
    """
    name = getattr(key, "name", None)
    char = getattr(key, "char", None)

    if name in MODIFIER_KEYS:
        return None
    if name == "backspace":
        return InputKind.DELETE, ""
    if name in RESET_KEYS or (name and FUNCTION_KEY.match(name)):
        return InputKind.RESET, ""
    if modifiers & SHORTCUT_MODIFIERS:
        return InputKind.RESET, ""
    if name == "space":
        return InputKind.ACCEPTED, " "
    if char and char.isprintable():
        return InputKind.ACCEPTED, char
    return None


class KeyboardMonitor:
    """Feeds global key and mouse-button presses to a callback as InputEvents."""

    clock = "monotonic"

    def __init__(self, callback: Callable[[InputEvent], None]):
        """Initialize keyboard monitor.

        Args:
            callback: Receives each classified InputEvent
        """
        self.callback = callback
        self.running = False
        self._modifiers: Set[str] = set()
        self._lock = threading.Lock()
        self._keyboard_listener = None
        self._mouse_listener = None

    def start(self) -> None:
        """Install the keyboard and mouse hooks."""
        if self.running:
            return

        from pynput import keyboard, mouse

        self._keyboard_listener = keyboard.Listener(on_press=self.on_press, on_release=self.on_release)
        self._mouse_listener = mouse.Listener(on_click=self.on_click)
        self._keyboard_listener.start()
        self._mouse_listener.start()
        self.running = True
        logger.info("Keyboard monitor started")

    def stop(self) -> None:
        """Remove the hooks."""
        if not self.running:
            return
        for listener in (self._keyboard_listener, self._mouse_listener):
            if listener is not None:
                listener.stop()
        self._keyboard_listener = None
        self._mouse_listener = None
        self.running = False
        with self._lock:
            self._modifiers.clear()
        logger.info("Keyboard monitor stopped")

    def on_press(self, key: Any) -> None:
        timestamp = time.monotonic()
        name = getattr(key, "name", None)
        with self._lock:
            if name in MODIFIER_KEYS:
                self._modifiers.add(MODIFIER_KEYS[name])
            modifiers = frozenset(self._modifiers)

        classified = classify_key(key, modifiers)
        if classified is None:
            return
        kind, characters = classified
        self._emit(InputEvent(kind=kind, timestamp=timestamp, characters=characters, modifiers=modifiers))

    def on_release(self, key: Any) -> None:
        name = getattr(key, "name", None)
        if name in MODIFIER_KEYS:
            with self._lock:
                self._modifiers.discard(MODIFIER_KEYS[name])

    def on_click(self, x: int, y: int, button: Any, pressed: bool) -> None:
        if pressed:
            self._emit(InputEvent(kind=InputKind.RESET, timestamp=time.monotonic()))

    def _emit(self, event: InputEvent) -> None:
        try:
            self.callback(event)
        except Exception:
            logger.exception(f"Error handling {event.kind.value} input event")
