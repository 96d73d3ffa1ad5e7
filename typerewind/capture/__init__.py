"""Frame capture module."""

from .producer import FrameProducer, SyntheticFrameProducer
from .frame_pub import FramePublisher

__all__ = [
    'FrameProducer',
    'SyntheticFrameProducer',
    'FramePublisher'
]
