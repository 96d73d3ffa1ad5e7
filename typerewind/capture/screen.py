"""Screen capture producer backed by mss."""

import logging
from typing import Callable

import mss
import numpy as np

from ..models.frame import Frame
from .producer import FrameProducer

logger = logging.getLogger(__name__)


class ScreenFrameProducer(FrameProducer):
    """Grabs one monitor at the configured frame rate."""

    def __init__(self, callback: Callable[[Frame], None], monitor: int = 1, **kwargs):
        """Initialize screen producer.

        Args:
            callback: Receives each delivered Frame
            monitor: mss monitor index (0 is all monitors combined)
        """
        super().__init__(callback, **kwargs)
        self.monitor = monitor
        self._sct = None
        self._region = None

    def _open(self) -> None:
        # mss handles are not shareable across threads
        self._sct = mss.mss()
        self._region = self._sct.monitors[self.monitor]
        logger.info(f"Screen capture opened: monitor {self.monitor} "
                    f"{self._region['width']}x{self._region['height']}")

    def _grab_frame(self) -> np.ndarray:
        return np.array(self._sct.grab(self._region))

    def _close(self) -> None:
        if self._sct is not None:
            self._sct.close()
            self._sct = None
