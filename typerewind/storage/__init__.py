"""Frame storage: sinks, spooling and session files."""

from .sink import FrameSink, MemoryFrameSink, FrameFileSink, read_frame_index, load_frames
from .spooler import FrameSpooler
from .file_manager import FileManager

__all__ = [
    "FrameSink",
    "MemoryFrameSink",
    "FrameFileSink",
    "read_frame_index",
    "load_frames",
    "FrameSpooler",
    "FileManager",
]
