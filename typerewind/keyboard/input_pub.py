"""Input event publisher module for pub/sub event publishing."""

import logging
from pubsub import pub
from ..models.events import InputEvent

logger = logging.getLogger(__name__)


class InputPublisher:
    """Publishes input events using pubsub.pub for pub/sub architecture."""

    def __init__(self, topic: str = "input.event"):
        """Initialize input publisher.

        Args:
            topic: Pub/sub topic name for input events
        """
        self.topic = topic
        logger.info(f"InputPublisher initialized with topic: {topic}")

    def publish_input_event(self, event: InputEvent) -> None:
        """Publish an input event to the pub/sub topic.

        Args:
            event: InputEvent to publish
        """
        pub.sendMessage(self.topic, event=event)
        logger.debug(f"Published input event: {event.kind.value} @ {event.timestamp:.3f}")
