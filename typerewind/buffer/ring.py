"""Fixed-capacity, time-addressable ring buffer for recorded frames."""

import logging
from typing import Generic, List, Optional, TypeVar

from ..errors import BufferFinishedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RingBuffer(Generic[T]):
    """Circular store addressed by an absolute logical write index.

    The write cursor only grows, except when ``rewind_cursor_to`` moves it
    back. Logical index ``i`` lives in slot ``i % capacity``; the live window
    is ``[max(0, write_index - capacity), write_index)``.

    The buffer does no locking of its own. Callers that write from one thread
    and perform surgery from another must serialize through a shared lock.
    """

    def __init__(self, capacity: int):
        """Initialize ring buffer.

        Args:
            capacity: Number of slots; fixed for the buffer's lifetime
        """
        if not isinstance(capacity, int) or isinstance(capacity, bool) or capacity <= 0:
            raise ValueError(f"Ring buffer capacity must be a positive integer, got {capacity!r}")

        self._capacity = capacity
        self._slots: List[Optional[T]] = [None] * capacity
        self._write_index = 0
        self._finished = False

        logger.info(f"RingBuffer initialized: {capacity} slots")

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def write_index(self) -> int:
        """Logical index the next write lands at. Moves back only via rewind_cursor_to."""
        return self._write_index

    @property
    def is_finished(self) -> bool:
        return self._finished

    def write(self, item: T) -> Optional[T]:
        """Store an item at the cursor and advance it.

        Args:
            item: Frame to store

        Returns:
            Whatever previously occupied the slot, or None
        """
        if self._finished:
            raise BufferFinishedError("Cannot write to a finished ring buffer")

        slot = self._write_index % self._capacity
        displaced = self._slots[slot]
        self._slots[slot] = item
        self._write_index += 1
        return displaced

    def read_all(self) -> List[T]:
        """Return the live window oldest-first, skipping cleared slots."""
        items = []
        for index in self.live_range:
            item = self._slots[index % self._capacity]
            if item is not None:
                items.append(item)
        return items

    @property
    def live_range(self) -> range:
        """Half-open range of logical indices currently holding valid data."""
        return range(max(0, self._write_index - self._capacity), self._write_index)

    def get(self, index: int) -> Optional[T]:
        return self._slots[index % self._capacity]

    def set(self, index: int, value: Optional[T]) -> None:
        """Overwrite the slot for a logical index; None clears it.

        The write cursor is not moved.
        """
        self._slots[index % self._capacity] = value

    def __getitem__(self, index: int) -> Optional[T]:
        return self.get(index)

    def __setitem__(self, index: int, value: Optional[T]) -> None:
        self.set(index, value)

    def __len__(self) -> int:
        return sum(1 for index in self.live_range if self._slots[index % self._capacity] is not None)

    def rewind_cursor_to(self, index: int) -> None:
        """Move the write cursor so the next write lands at ``index``.

        Slots before ``index`` are left untouched.
        """
        if index < 0:
            raise ValueError(f"Write index cannot be negative, got {index}")
        logger.debug(f"Rewinding write index {self._write_index} -> {index}")
        self._write_index = index

    def finish(self) -> None:
        """Drop every retained reference. Safe to call more than once."""
        if self._finished:
            return
        self._slots = [None] * self._capacity
        self._finished = True
        logger.debug("RingBuffer finished, slots released")

    def __repr__(self) -> str:
        return (f"RingBuffer(capacity={self._capacity}, write_index={self._write_index}, "
                f"occupied={len(self)})")
