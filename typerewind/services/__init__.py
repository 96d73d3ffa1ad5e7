"""Services layer for TypeRewind application logic."""

from .recording_service import RecordingService

__all__ = [
    "RecordingService",
]
