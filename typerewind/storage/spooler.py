"""Bounded hand-off of displaced frames to a sink."""

import queue
import logging
import threading
from typing import Optional

from ..errors import SinkBackpressure
from ..models.frame import Frame
from .sink import FrameSink

logger = logging.getLogger(__name__)

BACKPRESSURE_POLICIES = ("block", "drop")


class FrameSpooler:
    """Worker thread that feeds frames to a sink through a bounded queue.

    Under the ``block`` policy ``submit`` waits for room (up to
    ``block_timeout`` seconds, forever if None). Under ``drop`` a full queue
    drops the frame at once. Dropped frames are counted and logged.
    """

    def __init__(self,
                 sink: FrameSink,
                 queue_size: int = 256,
                 backpressure: str = "block",
                 block_timeout: Optional[float] = 1.0):
        """Initialize frame spooler.

        Args:
            sink: Destination for spooled frames
            queue_size: Maximum frames waiting for the sink
            backpressure: "block" or "drop"
            block_timeout: Longest wait for queue room under "block"
        """
        if backpressure not in BACKPRESSURE_POLICIES:
            raise ValueError(f"Unknown backpressure policy: {backpressure}")
        if queue_size <= 0:
            raise ValueError(f"queue_size must be positive, got {queue_size}")

        self.sink = sink
        self.backpressure = backpressure
        self.block_timeout = block_timeout
        self.frame_queue: queue.Queue = queue.Queue(maxsize=queue_size)

        self.frames_submitted = 0
        self.frames_written = 0
        self.frames_dropped = 0
        self.write_errors = 0

        self.closed = False
        self.worker_thread = threading.Thread(target=self._worker_loop, daemon=True)
        self.worker_thread.name = "FrameSpoolerThread"
        self.worker_thread.start()

        logger.info(f"FrameSpooler started: queue_size={queue_size}, backpressure={backpressure}")

    def submit(self, frame: Frame, block: bool = False) -> bool:
        """Hand a frame to the sink worker.

        Args:
            frame: Frame to spool
            block: Wait for room without timeout, whatever the policy

        Returns:
            True if the frame was queued, False if it was dropped
        """
        if self.closed:
            raise RuntimeError("FrameSpooler is closed")

        self.frames_submitted += 1
        try:
            if block:
                self.frame_queue.put(frame)
            elif self.backpressure == "block":
                self.frame_queue.put(frame, timeout=self.block_timeout)
            else:
                self.frame_queue.put_nowait(frame)
            return True
        except queue.Full:
            self.frames_dropped += 1
            error = SinkBackpressure(f"Sink queue full, dropped frame {frame.sequence_number} "
                                     f"@ {frame.timestamp:.3f}")
            logger.warning(f"{error} ({self.frames_dropped} dropped so far)")
            return False

    def _worker_loop(self) -> None:
        while True:
            frame = self.frame_queue.get()
            try:
                if frame is None:
                    break
                self.sink.write_frame(frame)
                self.frames_written += 1
            except Exception as e:
                self.write_errors += 1
                logger.error(f"Sink failed to write frame {frame.sequence_number}: {e}", exc_info=True)
            finally:
                self.frame_queue.task_done()

    def close(self, timeout: float = 10.0) -> None:
        """Write out everything queued, stop the worker and close the sink."""
        if self.closed:
            return
        self.closed = True

        logger.info(f"Closing FrameSpooler, {self.frame_queue.qsize()} frames queued")
        self.frame_queue.put(None)
        self.worker_thread.join(timeout)
        if self.worker_thread.is_alive():
            logger.warning("FrameSpooler worker did not finish in time")

        self.sink.close()
        logger.info(f"FrameSpooler closed: {self.frames_written} written, "
                    f"{self.frames_dropped} dropped, {self.write_errors} errors")
