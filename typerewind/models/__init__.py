"""Data models for the TypeRewind application."""

from .frame import Frame, CaptureStats
from .events import InputKind, InputEvent, Keystroke, SurgeryOutcome, SurgeryResult
from .session import SessionInfo

__all__ = [
    "Frame",
    "CaptureStats",
    "InputKind",
    "InputEvent",
    "Keystroke",
    "SurgeryOutcome",
    "SurgeryResult",
    "SessionInfo",
]
