"""Keyboard and pointer input handling."""

from .monitor import KeyboardMonitor, classify_key
from .input_pub import InputPublisher

__all__ = [
    'KeyboardMonitor',
    'classify_key',
    'InputPublisher'
]
