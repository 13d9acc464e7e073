"""Processor event publisher for pub/sub change notification."""

import logging
from pubsub import pub

from ..models.chunk import Paragraph
from ..models.status import ProcessorSnapshot

logger = logging.getLogger(__name__)

PARAGRAPH_TOPIC = "transcription.paragraph"
STATUS_TOPIC = "transcription.status"


class ProcessorEventPublisher:
    """Publishes paragraph and status changes using pubsub.pub."""

    def __init__(self, paragraph_topic: str = PARAGRAPH_TOPIC, status_topic: str = STATUS_TOPIC):
        """Initialize processor event publisher.

        Args:
            paragraph_topic: Topic for paragraph updates
            status_topic: Topic for status/pending-count updates
        """
        self.paragraph_topic = paragraph_topic
        self.status_topic = status_topic
        logger.info(f"ProcessorEventPublisher initialized with topics: {paragraph_topic}, {status_topic}")

    def publish_paragraph(self, paragraph: Paragraph) -> None:
        pub.sendMessage(self.paragraph_topic, paragraph=paragraph)
        logger.debug(f"Published paragraph {paragraph.paragraph_id} ({paragraph.status.value})")

    def publish_status(self, snapshot: ProcessorSnapshot) -> None:
        pub.sendMessage(self.status_topic, snapshot=snapshot)
        logger.debug(f"Published status {snapshot.status} (pending={snapshot.pending_count})")
