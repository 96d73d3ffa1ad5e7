"""Undo controller that rewinds the frame buffer on delete keystrokes."""

import logging
import threading
from typing import Callable, Dict, Any, Optional

from pubsub import pub

from ..buffer import RingBuffer
from ..errors import CapacityExhaustedDuringSurgery, ClockDomainMismatch, EmptyLedgerOnDelete
from ..models.events import InputEvent, InputKind, Keystroke, SurgeryOutcome, SurgeryResult
from .ledger import KeystrokeLedger

logger = logging.getLogger(__name__)


class RewindController:
    """Turns the live input stream into ledger updates and buffer surgery.

    Every event is handled while holding ``lock``, the same lock the frame
    producer holds while delivering into the buffer. ``flush`` must deliver
    the producer's pending frames synchronously on the calling thread, so by
    the time the ledger or buffer is touched the frame that belongs to the
    triggering keystroke is already in the buffer.
    """

    def __init__(self,
                 buffer: RingBuffer,
                 lock: Optional[threading.RLock] = None,
                 flush: Optional[Callable[[], None]] = None,
                 topic: str = "input.event",
                 max_ledger_depth: Optional[int] = None,
                 frame_clock: str = "monotonic",
                 input_clock: str = "monotonic"):
        """Initialize rewind controller.

        Args:
            buffer: Ring buffer to operate on
            lock: Mutation lock shared with the frame producer
            flush: Forces the producer to deliver any in-flight frames
            topic: Pub/sub topic carrying InputEvents
            max_ledger_depth: Depth limit for the undo history
            frame_clock: Clock domain of frame timestamps
            input_clock: Clock domain of input event timestamps
        """
        self.buffer = buffer
        self.lock = lock if lock is not None else threading.RLock()
        self.flush = flush
        self.topic = topic
        self.frame_clock = frame_clock
        self.input_clock = input_clock
        self.ledger = KeystrokeLedger(max_ledger_depth)
        self.is_active = False

        self.last_result: Optional[SurgeryResult] = None
        self.keystrokes_accepted = 0
        self.resets = 0
        self.surgeries = 0
        self.frames_erased = 0
        self.horizon_exhaustions = 0
        self.empty_deletes = 0

    def activate(self) -> None:
        """Start consuming input events from the pub/sub topic.

        Raises:
            ClockDomainMismatch: if frame and input timestamps are not comparable
        """
        if self.is_active:
            return
        if self.frame_clock != self.input_clock:
            raise ClockDomainMismatch(self.frame_clock, self.input_clock)

        self.ledger.reset()
        pub.subscribe(self.on_input_event, self.topic)
        self.is_active = True
        logger.info(f"RewindController activated - subscribed to {self.topic}")

    def deactivate(self) -> None:
        """Stop consuming input events and forget the undo history."""
        if not self.is_active:
            return
        try:
            pub.unsubscribe(self.on_input_event, self.topic)
        except Exception as e:
            logger.warning(f"Error during unsubscribe: {e}")
        self.ledger.reset()
        self.is_active = False
        logger.info("RewindController deactivated")

    def on_input_event(self, event: InputEvent) -> Optional[SurgeryResult]:
        """Handle one input event.

        Returns:
            The SurgeryResult for delete keystrokes, None otherwise
        """
        with self.lock:
            if event.kind is InputKind.ACCEPTED:
                self._flush_producer()
                self.ledger.push(Keystroke(timestamp=event.timestamp, characters=event.characters))
                self.keystrokes_accepted += 1
                logger.debug(f"Accepted '{event.characters}' @ {event.timestamp:.3f} "
                             f"-> index {self.buffer.write_index}")
                return None

            if event.kind is InputKind.DELETE and not event.modifiers:
                return self._undo_last_keystroke()

            # Resets, and deletes with modifiers (word or line deletes)
            self.ledger.reset()
            self.resets += 1
            return None

    def _undo_last_keystroke(self) -> SurgeryResult:
        keystroke = self.ledger.pop()
        if keystroke is None:
            self.empty_deletes += 1
            logger.debug(f"{EmptyLedgerOnDelete('nothing to undo')} ({self.empty_deletes} so far)")
            result = SurgeryResult(outcome=SurgeryOutcome.EMPTY_LEDGER,
                                   write_index_before=self.buffer.write_index,
                                   write_index_after=self.buffer.write_index)
            self.last_result = result
            return result

        self._flush_producer()
        return self.surgery(keystroke)

    def surgery(self, keystroke: Keystroke) -> SurgeryResult:
        """Erase frames newer than a keystroke and rewind the write cursor.

        Scans the live window newest-first. Frames stamped after the keystroke
        are cleared; the first frame at or before it is kept and the cursor is
        placed right after it. If no such frame is buffered, everything in the
        window is erased and the cursor moves to the window start.

        Args:
            keystroke: Keystroke being undone

        Returns:
            SurgeryResult describing what was erased
        """
        with self.lock:
            live_range = self.buffer.live_range
            index_before = self.buffer.write_index
            erased = 0
            outcome = SurgeryOutcome.HORIZON_EXHAUSTED
            new_index = live_range.start

            for index in reversed(live_range):
                frame = self.buffer.get(index)
                if frame is None:
                    # cleared by an earlier undo
                    continue
                if frame.timestamp > keystroke.timestamp:
                    self.buffer.set(index, None)
                    erased += 1
                    continue
                outcome = SurgeryOutcome.REWOUND
                new_index = index + 1
                break

            self.buffer.rewind_cursor_to(new_index)

            result = SurgeryResult(outcome=outcome,
                                   keystroke=keystroke,
                                   frames_erased=erased,
                                   write_index_before=index_before,
                                   write_index_after=new_index)
            self.last_result = result
            self.surgeries += 1
            self.frames_erased += erased
            if outcome is SurgeryOutcome.HORIZON_EXHAUSTED:
                self.horizon_exhaustions += 1

        if outcome is SurgeryOutcome.HORIZON_EXHAUSTED:
            error = CapacityExhaustedDuringSurgery(
                f"Undo of '{keystroke.characters}' @ {keystroke.timestamp:.3f} predates the buffer")
            logger.warning(f"{error}; erased {erased} frames, partial correction")
        else:
            logger.info(f"Rewound to just after '{keystroke.characters}' @ {keystroke.timestamp:.3f}: "
                        f"erased {erased} frames, index {index_before} -> {new_index}")
        return result

    def _flush_producer(self) -> None:
        if self.flush is not None:
            self.flush()

    def get_rewind_stats(self) -> Dict[str, Any]:
        """Get undo statistics."""
        with self.lock:
            return {
                "is_active": self.is_active,
                "ledger_depth": len(self.ledger),
                "keystrokes_accepted": self.keystrokes_accepted,
                "resets": self.resets,
                "surgeries": self.surgeries,
                "frames_erased": self.frames_erased,
                "horizon_exhaustions": self.horizon_exhaustions,
                "empty_deletes": self.empty_deletes,
            }
