"""Frame-related data models."""

from dataclasses import dataclass
from typing import Any


@dataclass
class Frame:
    """A single produced frame with its presentation timestamp."""
    payload: Any
    timestamp: float  # Presentation time, same clock as input events
    sequence_number: int = 0


@dataclass
class CaptureStats:
    """Frame capture statistics."""
    is_capturing: bool
    duration_seconds: float
    frames_per_second: float
    frames_per_unit: int
    total_frames: int
    pending_frames: int
