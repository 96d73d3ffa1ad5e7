"""Unit tests for RewindController class."""

import threading
from unittest.mock import Mock

import pytest
from pubsub import pub

from typerewind.buffer import RingBuffer
from typerewind.errors import ClockDomainMismatch
from typerewind.models.events import InputEvent, InputKind, Keystroke, SurgeryOutcome
from typerewind.rewind import RewindController


def accepted(timestamp, characters="a"):
    return InputEvent(kind=InputKind.ACCEPTED, timestamp=timestamp, characters=characters)


def delete(timestamp, modifiers=frozenset()):
    return InputEvent(kind=InputKind.DELETE, timestamp=timestamp, modifiers=modifiers)


def reset(timestamp):
    return InputEvent(kind=InputKind.RESET, timestamp=timestamp)


@pytest.fixture
def filled_buffer(make_frame):
    """Capacity-5 buffer holding frames stamped 1..5."""
    buffer = RingBuffer(5)
    for t in (1, 2, 3, 4, 5):
        buffer.write(make_frame(t))
    return buffer


@pytest.mark.unit
class TestSurgery:
    """Test cases for RewindController.surgery."""

    def test_surgery_erases_frames_after_keystroke(self, filled_buffer, make_frame):
        """Test frames after the keystroke are cleared and the next write follows it."""
        controller = RewindController(filled_buffer)

        result = controller.surgery(Keystroke(timestamp=3, characters="x"))

        assert result.outcome is SurgeryOutcome.REWOUND
        assert result.frames_erased == 2
        assert result.write_index_before == 5
        assert result.write_index_after == 3
        assert filled_buffer.get(3) is None
        assert filled_buffer.get(4) is None

        filled_buffer.write(make_frame(6))
        assert [f.timestamp for f in filled_buffer.read_all()] == [1, 2, 3, 6]

    def test_surgery_keeps_frame_at_exact_timestamp(self, make_frame):
        """Test a frame stamped exactly at the keystroke is retained."""
        buffer = RingBuffer(6)
        for t in (1, 3, 3, 4):
            buffer.write(make_frame(t))
        controller = RewindController(buffer)

        result = controller.surgery(Keystroke(timestamp=3, characters="x"))

        assert result.frames_erased == 1
        assert buffer.write_index == 3
        assert [f.timestamp for f in buffer.read_all()] == [1, 3, 3]

    def test_surgery_past_horizon(self, make_frame):
        """Test undoing past the oldest frame erases everything without error."""
        buffer = RingBuffer(3)
        for t in (10, 20, 30):
            buffer.write(make_frame(t))
        controller = RewindController(buffer)

        result = controller.surgery(Keystroke(timestamp=5, characters="x"))

        assert result.outcome is SurgeryOutcome.HORIZON_EXHAUSTED
        assert result.frames_erased == 3
        assert buffer.write_index == 0
        assert buffer.read_all() == []
        assert controller.horizon_exhaustions == 1

    def test_surgery_past_horizon_after_wrap(self, make_frame):
        """Test the cursor lands on the window start, not zero, once wrapped."""
        buffer = RingBuffer(3)
        for t in (10, 20, 30, 40, 50):
            buffer.write(make_frame(t))
        controller = RewindController(buffer)

        result = controller.surgery(Keystroke(timestamp=5, characters="x"))

        assert result.outcome is SurgeryOutcome.HORIZON_EXHAUSTED
        assert result.write_index_after == 2
        assert buffer.read_all() == []

    def test_surgery_on_empty_buffer(self):
        """Test surgery with nothing buffered is a harmless partial correction."""
        buffer = RingBuffer(3)
        controller = RewindController(buffer)

        result = controller.surgery(Keystroke(timestamp=5, characters="x"))

        assert result.outcome is SurgeryOutcome.HORIZON_EXHAUSTED
        assert result.frames_erased == 0
        assert buffer.write_index == 0

    def test_surgery_skips_cleared_slots(self, filled_buffer):
        """Test slots cleared earlier don't stop the scan."""
        filled_buffer.set(4, None)
        filled_buffer.set(3, None)
        controller = RewindController(filled_buffer)

        result = controller.surgery(Keystroke(timestamp=1, characters="x"))

        assert result.outcome is SurgeryOutcome.REWOUND
        assert result.frames_erased == 2
        assert filled_buffer.write_index == 1
        assert [f.timestamp for f in filled_buffer.read_all()] == [1]

    def test_surgery_with_nothing_newer(self, filled_buffer):
        """Test a keystroke after the newest frame leaves the buffer untouched."""
        controller = RewindController(filled_buffer)

        result = controller.surgery(Keystroke(timestamp=9, characters="x"))

        assert result.outcome is SurgeryOutcome.REWOUND
        assert result.frames_erased == 0
        assert filled_buffer.write_index == 5
        assert len(filled_buffer) == 5


@pytest.mark.unit
class TestRewindController:
    """Test cases for RewindController input handling."""

    def test_accepted_keystroke_flushes_then_pushes(self, filled_buffer):
        """Test an accepted keystroke forces a flush and lands on the ledger."""
        flush = Mock()
        controller = RewindController(filled_buffer, flush=flush)

        assert controller.on_input_event(accepted(3, "q")) is None

        flush.assert_called_once()
        assert controller.ledger.peek() == Keystroke(timestamp=3, characters="q")
        assert controller.keystrokes_accepted == 1

    def test_delete_undoes_newest_keystroke(self, filled_buffer, make_frame):
        """Test delete pops the newest keystroke and performs surgery for it."""
        flush = Mock()
        controller = RewindController(filled_buffer, flush=flush)
        controller.on_input_event(accepted(3, "x"))
        flush.reset_mock()

        result = controller.on_input_event(delete(6))

        flush.assert_called_once()
        assert result.outcome is SurgeryOutcome.REWOUND
        assert result.keystroke.characters == "x"
        assert len(controller.ledger) == 0

        filled_buffer.write(make_frame(6))
        assert [f.timestamp for f in filled_buffer.read_all()] == [1, 2, 3, 6]

    def test_delete_on_empty_ledger_is_noop(self, filled_buffer):
        """Test delete with nothing to undo leaves the buffer alone and skips the flush."""
        flush = Mock()
        controller = RewindController(filled_buffer, flush=flush)

        result = controller.on_input_event(delete(6))

        flush.assert_not_called()
        assert result.outcome is SurgeryOutcome.EMPTY_LEDGER
        assert filled_buffer.write_index == 5
        assert len(filled_buffer) == 5
        assert controller.empty_deletes == 1

    def test_repeated_deletes_are_independent(self, make_frame):
        """Test each delete undoes the next-newest keystroke, then becomes a no-op."""
        buffer = RingBuffer(20)
        controller = RewindController(buffer)
        for t in range(1, 11):
            buffer.write(make_frame(t))
            if t in (2, 5, 8):
                controller.on_input_event(accepted(t, str(t)))

        first = controller.on_input_event(delete(11))
        assert first.keystroke.timestamp == 8
        assert [f.timestamp for f in buffer.read_all()] == list(range(1, 9))

        second = controller.on_input_event(delete(12))
        assert second.keystroke.timestamp == 5
        assert [f.timestamp for f in buffer.read_all()] == [1, 2, 3, 4, 5]

        third = controller.on_input_event(delete(13))
        assert third.keystroke.timestamp == 2
        assert buffer.write_index == 2

        fourth = controller.on_input_event(delete(14))
        assert fourth.outcome is SurgeryOutcome.EMPTY_LEDGER
        assert buffer.write_index == 2
        assert controller.surgeries == 3

    def test_flush_materializes_frames_before_surgery(self, filled_buffer, make_frame):
        """Test frames delivered by the flush are seen and erased by the surgery."""
        controller = RewindController(filled_buffer)
        controller.on_input_event(accepted(3, "x"))
        controller.flush = lambda: filled_buffer.write(make_frame(6))

        result = controller.on_input_event(delete(7))

        assert result.frames_erased == 3
        assert [f.timestamp for f in filled_buffer.read_all()] == [2, 3]

    def test_reset_clears_ledger_not_buffer(self, filled_buffer):
        """Test reset forfeits the undo history and leaves frames alone."""
        controller = RewindController(filled_buffer)
        controller.on_input_event(accepted(2))
        controller.on_input_event(accepted(3))

        controller.on_input_event(reset(4))

        assert len(controller.ledger) == 0
        assert len(filled_buffer) == 5
        assert controller.on_input_event(delete(5)).outcome is SurgeryOutcome.EMPTY_LEDGER

    def test_reset_on_empty_ledger_is_idempotent(self, filled_buffer):
        """Test repeated resets with no history change nothing."""
        controller = RewindController(filled_buffer)

        controller.on_input_event(reset(1))
        controller.on_input_event(reset(2))

        assert len(controller.ledger) == 0
        assert filled_buffer.write_index == 5

    def test_delete_with_modifiers_resets(self, filled_buffer):
        """Test a modified delete (word delete) clears history instead of rewinding."""
        controller = RewindController(filled_buffer)
        controller.on_input_event(accepted(3))

        result = controller.on_input_event(delete(6, modifiers=frozenset({"alt"})))

        assert result is None
        assert len(controller.ledger) == 0
        assert len(filled_buffer) == 5

    def test_events_hold_the_shared_lock(self, filled_buffer):
        """Test the flush runs while the shared mutation lock is held."""
        lock = threading.RLock()
        held = []

        def flush():
            result = []
            other_thread = threading.Thread(target=lambda: result.append(lock.acquire(blocking=False)))
            other_thread.start()
            other_thread.join()
            held.append(not result[0])

        controller = RewindController(filled_buffer, lock=lock, flush=flush)
        controller.on_input_event(accepted(3))

        assert held == [True]

    def test_activate_subscribes_to_topic(self, filled_buffer):
        """Test published input events reach an active controller only."""
        controller = RewindController(filled_buffer, topic="test.input")
        controller.activate()

        pub.sendMessage("test.input", event=accepted(3))
        assert len(controller.ledger) == 1

        controller.deactivate()
        pub.sendMessage("test.input", event=accepted(4))
        assert controller.keystrokes_accepted == 1
        assert controller.is_active is False

    def test_activate_rejects_mismatched_clocks(self, filled_buffer):
        """Test activation fails when frame and input clocks differ."""
        controller = RewindController(filled_buffer, frame_clock="monotonic", input_clock="realtime")

        with pytest.raises(ClockDomainMismatch):
            controller.activate()
        assert controller.is_active is False

    def test_get_rewind_stats(self, filled_buffer):
        """Test statistics reflect handled events."""
        controller = RewindController(filled_buffer)
        controller.on_input_event(accepted(3))
        controller.on_input_event(delete(6))
        controller.on_input_event(delete(7))
        controller.on_input_event(reset(8))

        stats = controller.get_rewind_stats()

        assert stats["keystrokes_accepted"] == 1
        assert stats["surgeries"] == 1
        assert stats["frames_erased"] == 2
        assert stats["empty_deletes"] == 1
        assert stats["resets"] == 1
        assert stats["ledger_depth"] == 0
