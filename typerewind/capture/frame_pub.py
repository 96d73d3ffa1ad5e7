"""Frame publisher module for pub/sub event publishing."""

import logging
from pubsub import pub
from ..models.frame import Frame

logger = logging.getLogger(__name__)


class FramePublisher:
    """Publishes frames using pubsub.pub for pub/sub architecture."""

    def __init__(self, topic: str = "video.frame"):
        """Initialize frame publisher.

        Args:
            topic: Pub/sub topic name for frames
        """
        self.topic = topic
        logger.info(f"FramePublisher initialized with topic: {topic}")

    def publish_frame(self, frame: Frame) -> None:
        """Publish a frame to the pub/sub topic.

        Args:
            frame: Frame to publish
        """
        pub.sendMessage(self.topic, frame=frame)
