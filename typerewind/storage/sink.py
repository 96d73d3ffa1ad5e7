"""Durable destinations for frames leaving the ring buffer."""

import json
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np

from ..models.frame import Frame

logger = logging.getLogger(__name__)


class FrameSink(ABC):
    """Accepts frames in increasing timestamp order and never reorders them."""

    @abstractmethod
    def write_frame(self, frame: Frame) -> None:
        """Persist one frame."""

    def close(self) -> None:
        """Flush and release resources."""


class MemoryFrameSink(FrameSink):
    """Keeps every frame in a list."""

    def __init__(self):
        self.frames: List[Frame] = []
        self.lock = threading.Lock()
        self.closed = False

    def write_frame(self, frame: Frame) -> None:
        with self.lock:
            self.frames.append(frame)

    def close(self) -> None:
        self.closed = True


class FrameFileSink(FrameSink):
    """Appends frames to ``frames.npy`` with a JSON-lines index beside it.

    Each payload is written with ``numpy.save`` as its own record, so the
    file can be read back one array at a time in write order.
    """

    FRAMES_FILENAME = "frames.npy"
    INDEX_FILENAME = "frames.jsonl"

    def __init__(self, directory: str):
        """Initialize file sink.

        Args:
            directory: Directory receiving the frames and index files
        """
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.frames_path = self.directory / self.FRAMES_FILENAME
        self.index_path = self.directory / self.INDEX_FILENAME

        self._frames_file = open(self.frames_path, 'ab')
        self._index_file = open(self.index_path, 'a', encoding='utf-8')
        self._last_timestamp: Optional[float] = None
        self.frames_written = 0

        logger.info(f"FrameFileSink writing to {self.directory}")

    def write_frame(self, frame: Frame) -> None:
        if self._last_timestamp is not None and frame.timestamp < self._last_timestamp:
            logger.warning(f"Frame {frame.sequence_number} @ {frame.timestamp:.3f} is older than "
                           f"the previous frame @ {self._last_timestamp:.3f}")
        self._last_timestamp = frame.timestamp

        data = np.asarray(frame.payload)
        np.save(self._frames_file, data, allow_pickle=False)
        self._index_file.write(json.dumps({
            "sequence_number": frame.sequence_number,
            "timestamp": frame.timestamp,
            "shape": list(data.shape),
            "dtype": str(data.dtype),
        }) + "\n")
        self.frames_written += 1

    @property
    def closed(self) -> bool:
        return self._frames_file.closed

    def close(self) -> None:
        if self._frames_file.closed:
            return
        self._frames_file.close()
        self._index_file.close()
        logger.info(f"FrameFileSink closed after {self.frames_written} frames")


def read_frame_index(directory: str) -> List[Dict[str, Any]]:
    """Read the JSON-lines index written by FrameFileSink."""
    index_path = Path(directory) / FrameFileSink.INDEX_FILENAME
    if not index_path.exists():
        return []
    with open(index_path, 'r', encoding='utf-8') as f:
        return [json.loads(line) for line in f if line.strip()]


def load_frames(directory: str) -> List[Frame]:
    """Load every frame written by FrameFileSink, in write order."""
    entries = read_frame_index(directory)
    frames = []
    with open(Path(directory) / FrameFileSink.FRAMES_FILENAME, 'rb') as f:
        for entry in entries:
            payload = np.load(f, allow_pickle=False)
            frames.append(Frame(payload=payload,
                                timestamp=entry["timestamp"],
                                sequence_number=entry["sequence_number"]))
    return frames
