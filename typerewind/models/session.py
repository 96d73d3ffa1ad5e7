"""Session-related data models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class SessionInfo:
    """Information about a recording session."""
    session_id: str
    start_time: datetime
    duration_seconds: float
    frames_file: str
    buffer_capacity: int
    frames_per_second: float
    frames_written: int
    frames_displaced: int
    frames_drained: int
    frames_dropped: int
    surgeries: int
    frames_erased: int
