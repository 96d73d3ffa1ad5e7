"""TypeRewind - screen recording where backspace rewinds the video."""

__version__ = "0.1.0"
