"""Recording service that ties capture, the ring buffer, undo and the sink together."""

import time
import logging
from typing import Any, Dict, List, Optional

from pubsub import pub

from ..buffer import RingBuffer
from ..capture.producer import FrameProducer
from ..config import TypeRewindConfig
from ..errors import ClockDomainMismatch
from ..models.frame import Frame
from ..rewind import RewindController
from ..storage.sink import FrameSink
from ..storage.spooler import FrameSpooler

logger = logging.getLogger(__name__)


class RecordingService:
    """Owns one recording: buffer, undo controller and displaced-frame spooling.

    The producer's lock is the single mutation boundary for the buffer. Frame
    delivery and undo handling both run under it.
    """

    def __init__(self,
                 config: TypeRewindConfig,
                 producer: FrameProducer,
                 sink: FrameSink,
                 frame_topic: str = "video.frame",
                 input_topic: str = "input.event",
                 input_clock: str = "monotonic"):
        """Initialize recording service.

        Args:
            config: Application configuration
            producer: Frame source; must publish on ``frame_topic``
            sink: Durable destination for displaced and drained frames
            frame_topic: Pub/sub topic carrying Frames
            input_topic: Pub/sub topic carrying InputEvents
            input_clock: Clock domain of the input source
        """
        self.config = config
        self.producer = producer
        self.sink = sink
        self.frame_topic = frame_topic
        self.input_topic = input_topic
        self.input_clock = input_clock
        self.lock = producer.lock

        self.buffer: Optional[RingBuffer] = None
        self.controller: Optional[RewindController] = None
        self.spooler: Optional[FrameSpooler] = None

        # Recording state
        self.is_recording = False
        self.start_time: Optional[float] = None
        self.stop_time: Optional[float] = None
        self.frames_written = 0
        self.frames_displaced = 0
        self.frames_drained = 0

    def start(self) -> None:
        """Allocate the buffer, activate undo handling and start capturing.

        Raises:
            ClockDomainMismatch: if producer and input source use different clocks
        """
        if self.is_recording:
            logger.warning("Recording already in progress")
            return

        if self.producer.clock != self.input_clock:
            raise ClockDomainMismatch(self.producer.clock, self.input_clock)

        capacity = self.config.get_buffer_capacity()
        self.buffer = RingBuffer(capacity)
        self.spooler = FrameSpooler(
            self.sink,
            queue_size=self.config.get('sink.queue_size', 256),
            backpressure=self.config.get('sink.backpressure', 'block'),
            block_timeout=self.config.get('sink.block_timeout', 1.0),
        )
        self.controller = RewindController(
            self.buffer,
            lock=self.lock,
            flush=self.producer.flush,
            topic=self.input_topic,
            max_ledger_depth=self.config.get('rewind.max_ledger_depth', 256),
            frame_clock=self.producer.clock,
            input_clock=self.input_clock,
        )

        self.frames_written = 0
        self.frames_displaced = 0
        self.frames_drained = 0

        self.controller.activate()
        pub.subscribe(self._on_frame, self.frame_topic)
        self.start_time = time.monotonic()
        self.stop_time = None
        self.is_recording = True
        self.producer.start_capture()

        logger.info(f"Recording started: buffer of {capacity} frames")

    def _on_frame(self, frame: Frame) -> None:
        """Write a delivered frame and spool whatever it displaced."""
        with self.lock:
            if self.buffer is None or self.buffer.is_finished:
                logger.warning(f"Frame {frame.sequence_number} arrived with no active buffer, dropping")
                return
            displaced = self.buffer.write(frame)
            self.frames_written += 1
            if displaced is not None:
                self.frames_displaced += 1
                self.spooler.submit(displaced)

    def drain(self) -> List[Frame]:
        """Return every frame still in the buffer, oldest first, without removing it."""
        with self.lock:
            if self.buffer is None:
                return []
            return self.buffer.read_all()

    def stop(self) -> Dict[str, Any]:
        """Stop capturing, drain the buffer into the sink and release it.

        Returns:
            Session statistics
        """
        if not self.is_recording:
            logger.warning("No recording in progress")
            return self.get_session_stats()

        # Pending frames are delivered while we are still subscribed
        self.producer.stop_capture()
        self.controller.deactivate()
        try:
            pub.unsubscribe(self._on_frame, self.frame_topic)
        except Exception as e:
            logger.warning(f"Error during unsubscribe: {e}")

        with self.lock:
            remaining = self.buffer.read_all()
            self.buffer.finish()

        logger.info(f"Draining {len(remaining)} buffered frames to the sink")
        for frame in remaining:
            self.spooler.submit(frame, block=True)
        self.frames_drained = len(remaining)
        self.spooler.close()

        self.is_recording = False
        self.stop_time = time.monotonic()
        stats = self.get_session_stats()
        logger.info(f"Recording stopped: {stats}")
        return stats

    def get_session_stats(self) -> Dict[str, Any]:
        """Get statistics for the current or last recording."""
        duration = 0.0
        if self.start_time is not None:
            end = self.stop_time if self.stop_time is not None else time.monotonic()
            duration = end - self.start_time

        rewind_stats = self.controller.get_rewind_stats() if self.controller is not None else {}
        return {
            "is_recording": self.is_recording,
            "duration_seconds": duration,
            "buffer_capacity": self.buffer.capacity if self.buffer is not None else 0,
            "frames_written": self.frames_written,
            "frames_displaced": self.frames_displaced,
            "frames_drained": self.frames_drained,
            "frames_dropped": self.spooler.frames_dropped if self.spooler is not None else 0,
            "surgeries": rewind_stats.get("surgeries", 0),
            "frames_erased": rewind_stats.get("frames_erased", 0),
        }
