"""Error taxonomy for TypeRewind.

Only ``ClockDomainMismatch`` and ``BufferFinishedError`` are raised to callers.
The remaining conditions are handled where they occur and logged; the classes
exist so that log records and counters can name them.
"""


class TypeRewindError(Exception):
    """Base class for all TypeRewind errors."""


class ClockDomainMismatch(TypeRewindError):
    """Frame and input timestamps come from different clocks."""

    def __init__(self, frame_clock: str, input_clock: str):
        self.frame_clock = frame_clock
        self.input_clock = input_clock
        super().__init__(
            f"Frame clock '{frame_clock}' does not match input clock '{input_clock}'"
        )


class BufferFinishedError(TypeRewindError):
    """A write was attempted on a buffer that has already been finished."""


class CapacityExhaustedDuringSurgery(TypeRewindError):
    """Undo reached past the oldest buffered frame; correction is partial."""


class EmptyLedgerOnDelete(TypeRewindError):
    """Delete arrived with no keystroke left to undo."""


class SinkBackpressure(TypeRewindError):
    """The sink could not accept a displaced frame in time."""
