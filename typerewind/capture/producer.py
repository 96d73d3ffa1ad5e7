"""Frame capture with a background thread and synchronous flush."""

import time
import logging
import threading
from abc import ABC, abstractmethod
from threading import Thread, Event
from typing import Any, Callable, List, Optional

import numpy as np

from ..models.frame import Frame, CaptureStats

logger = logging.getLogger(__name__)


class FrameProducer(ABC):
    """Paced capture loop that delivers frames in encodable units.

    Frames are held back until ``frames_per_unit`` of them are pending, the
    way an encoder keeps a group of frames in flight. ``flush`` delivers the
    pending frames immediately on the calling thread.

    ``lock`` guards the pending frames and is held while frames are handed to
    the callback. Whoever mutates the downstream buffer from another thread
    must use this same lock.
    """

    clock = "monotonic"

    def __init__(
        self,
        callback: Callable[[Frame], None],
        frames_per_second: float = 60.0,
        frames_per_unit: int = 1,
        lock: Optional[threading.RLock] = None,
    ):
        """Initialize frame producer.

        Args:
            callback: Receives each delivered Frame, in timestamp order
            frames_per_second: Capture rate
            frames_per_unit: Frames held in flight before delivery
            lock: Re-entrant lock shared with buffer mutators
        """
        if frames_per_second <= 0:
            raise ValueError(f"frames_per_second must be positive, got {frames_per_second}")
        if frames_per_unit < 1:
            raise ValueError(f"frames_per_unit must be at least 1, got {frames_per_unit}")

        self.frame_callback = callback
        self.frames_per_second = frames_per_second
        self.frames_per_unit = frames_per_unit
        self.lock = lock if lock is not None else threading.RLock()

        self._pending: List[Frame] = []
        self._last_timestamp: Optional[float] = None

        # Capture thread management
        self.capture_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_capturing = False

        # Statistics tracking
        self.start_time: Optional[float] = None
        self.total_frames = 0

    @property
    def frame_interval(self) -> float:
        return 1.0 / self.frames_per_second

    def start_capture(self) -> None:
        """Start capturing in a background thread."""
        if self.is_capturing:
            logger.warning("Capture already in progress")
            return

        logger.info(f"Starting {type(self).__name__} at {self.frames_per_second} fps")
        self.stop_event.clear()
        self.start_time = time.monotonic()

        self.capture_thread = Thread(target=self._capture_continuously, daemon=True)
        self.capture_thread.name = "FrameCaptureThread"
        self.capture_thread.start()
        self.is_capturing = True

    def stop_capture(self) -> None:
        """Stop capturing and deliver whatever is still pending."""
        if not self.is_capturing:
            self.flush()
            return

        logger.info("Stopping frame capture")
        self.stop_event.set()

        if self.capture_thread and self.capture_thread.is_alive():
            self.capture_thread.join(timeout=2.0)
            if self.capture_thread.is_alive():
                logger.warning("Capture thread did not stop cleanly")

        self.is_capturing = False
        self.flush()
        logger.info(f"Capture stopped. Total frames: {self.total_frames}")

    def submit_frame(self, payload: Any, timestamp: Optional[float] = None) -> None:
        """Queue a captured frame, delivering the unit once it is complete.

        Args:
            payload: Frame data
            timestamp: Presentation time; defaults to now on the monotonic clock
        """
        if timestamp is None:
            timestamp = time.monotonic()

        with self.lock:
            if self._last_timestamp is not None and timestamp < self._last_timestamp:
                logger.warning(f"Dropping out-of-order frame @ {timestamp:.3f} "
                               f"(last was {self._last_timestamp:.3f})")
                return
            self._last_timestamp = timestamp

            self.total_frames += 1
            self._pending.append(Frame(payload=payload,
                                       timestamp=timestamp,
                                       sequence_number=self.total_frames))
            if len(self._pending) >= self.frames_per_unit:
                self._deliver_pending()

    def flush(self) -> None:
        """Deliver all pending frames now, on the calling thread."""
        with self.lock:
            self._deliver_pending()

    def _deliver_pending(self) -> None:
        frames, self._pending = self._pending, []
        for frame in frames:
            self.frame_callback(frame)

    @abstractmethod
    def _grab_frame(self) -> Any:
        """Capture one frame payload."""

    def _open(self) -> None:
        """Acquire capture resources on the capture thread."""

    def _close(self) -> None:
        """Release capture resources on the capture thread."""

    def _capture_continuously(self) -> None:
        """Internal method: paced capture loop in background thread."""
        next_deadline = time.monotonic()
        try:
            self._open()
            while not self.stop_event.is_set():
                payload = self._grab_frame()
                self.submit_frame(payload)

                next_deadline += self.frame_interval
                delay = next_deadline - time.monotonic()
                if delay > 0:
                    self.stop_event.wait(delay)
                else:
                    # Fell behind, don't try to catch up with a burst
                    next_deadline = time.monotonic()
        except Exception as e:
            logger.error(f"Error in capture loop: {e}", exc_info=True)
        finally:
            self._close()

    def get_capture_stats(self) -> CaptureStats:
        """Get current capture statistics."""
        duration = 0.0
        if self.start_time:
            duration = time.monotonic() - self.start_time

        with self.lock:
            pending = len(self._pending)

        return CaptureStats(
            is_capturing=self.is_capturing,
            duration_seconds=duration,
            frames_per_second=self.frames_per_second,
            frames_per_unit=self.frames_per_unit,
            total_frames=self.total_frames,
            pending_frames=pending,
        )


class SyntheticFrameProducer(FrameProducer):
    """Generates a moving test pattern; no capture hardware needed."""

    def __init__(self, callback: Callable[[Frame], None], width: int = 320, height: int = 200, **kwargs):
        super().__init__(callback, **kwargs)
        self.width = width
        self.height = height

    def _grab_frame(self) -> np.ndarray:
        frame = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        column = self.total_frames % self.width
        frame[:, column] = 255
        return frame
