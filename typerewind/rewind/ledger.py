"""Undo history of accepted keystrokes."""

import logging
from collections import deque
from typing import Deque, List, Optional

from ..models.events import Keystroke

logger = logging.getLogger(__name__)


class KeystrokeLedger:
    """LIFO stack of keystrokes accepted since the last reset."""

    def __init__(self, max_depth: Optional[int] = None):
        """Initialize keystroke ledger.

        Args:
            max_depth: Keep at most this many keystrokes; the oldest are
                forgotten first. None keeps everything until the next reset.
        """
        if max_depth is not None and max_depth <= 0:
            raise ValueError(f"max_depth must be positive, got {max_depth}")
        self.max_depth = max_depth
        self._entries: Deque[Keystroke] = deque(maxlen=max_depth)

    def push(self, keystroke: Keystroke) -> None:
        self._entries.append(keystroke)

    def pop(self) -> Optional[Keystroke]:
        """Remove and return the newest keystroke, or None if empty."""
        if not self._entries:
            return None
        return self._entries.pop()

    def peek(self) -> Optional[Keystroke]:
        return self._entries[-1] if self._entries else None

    def reset(self) -> None:
        """Forget the whole undo history."""
        if self._entries:
            logger.debug(f"Ledger reset, discarding {len(self._entries)} keystrokes")
        self._entries.clear()

    def entries(self) -> List[Keystroke]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)
