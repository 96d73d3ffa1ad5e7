"""Input event and rewind result models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional


class InputKind(Enum):
    """How an input event affects the undo history."""
    ACCEPTED = "accepted"  # Printable keystroke, becomes undoable
    DELETE = "delete"      # Backspace, undoes the newest keystroke
    RESET = "reset"        # Navigation, chords, pointer presses


@dataclass
class InputEvent:
    """A keyboard or pointer event delivered by the input source."""
    kind: InputKind
    timestamp: float  # Same clock as frame timestamps
    characters: str = ""
    modifiers: FrozenSet[str] = field(default_factory=frozenset)


@dataclass
class Keystroke:
    """An accepted keystroke held in the undo ledger."""
    timestamp: float
    characters: str


class SurgeryOutcome(Enum):
    """Result classification of a single undo."""
    REWOUND = "rewound"
    HORIZON_EXHAUSTED = "horizon_exhausted"
    EMPTY_LEDGER = "empty_ledger"


@dataclass
class SurgeryResult:
    """What a delete keystroke did to the buffer."""
    outcome: SurgeryOutcome
    keystroke: Optional[Keystroke] = None
    frames_erased: int = 0
    write_index_before: int = 0
    write_index_after: int = 0
