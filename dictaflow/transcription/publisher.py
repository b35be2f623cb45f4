"""Dictation publisher module for pub/sub event publishing."""

import logging
from typing import Callable

from pubsub import pub

from ..models.events import StatusEvent

logger = logging.getLogger(__name__)

TRANSCRIPT_TOPIC = "dictation_transcript"
SUBMIT_TOPIC = "dictation_submit"
STATUS_TOPIC = "dictation_status"


class DictationPublisher:
    """Re-publishes SessionController callbacks on pubsub topics.

    Listeners subscribe with ``pub.subscribe(listener, topic)``:
    ``dictation_transcript`` and ``dictation_submit`` send ``text=str``,
    ``dictation_status`` sends ``event=StatusEvent``.
    """

    def __init__(self,
                 transcript_topic: str = TRANSCRIPT_TOPIC,
                 submit_topic: str = SUBMIT_TOPIC,
                 status_topic: str = STATUS_TOPIC):
        self.transcript_topic = transcript_topic
        self.submit_topic = submit_topic
        self.status_topic = status_topic
        logger.info(f"DictationPublisher initialized with topics: "
                    f"{transcript_topic}, {submit_topic}, {status_topic}")

    def publish_transcript(self, text: str) -> None:
        pub.sendMessage(self.transcript_topic, text=text)

    def publish_submit(self, text: str) -> None:
        pub.sendMessage(self.submit_topic, text=text)
        logger.debug(f"Published submitted dictation ({len(text)} chars)")

    def publish_status(self, event: StatusEvent) -> None:
        pub.sendMessage(self.status_topic, event=event)
        logger.debug(f"Published status: {event.status.value}")

    def get_transcript_callback(self) -> Callable[[str], None]:
        return self.publish_transcript

    def get_submit_callback(self) -> Callable[[str], None]:
        return self.publish_submit

    def get_status_callback(self) -> Callable[[StatusEvent], None]:
        return self.publish_status
