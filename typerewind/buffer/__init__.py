"""Frame buffering module."""

from .ring import RingBuffer

__all__ = [
    'RingBuffer'
]
