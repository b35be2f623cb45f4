"""Stream transport: audio frames out, transcript events in."""

import logging
from typing import Callable, Optional, Union

from .base import AbstractDuplexChannel
from .messages import parse_transcript_event
from ..errors import MalformedMessage, TransportError
from ..models.events import TranscriptEvent
from ..models.transport import TransportState, TransportStats

logger = logging.getLogger(__name__)

EventCallback = Callable[[TranscriptEvent], None]
DisconnectCallback = Callable[[TransportError], None]


class StreamTransport:
    """Owns one duplex channel for the lifetime of a dictation session.

    Audio is forwarded only while the transport is OPEN; anything sent
    before open or after close is dropped without error. Inbound frames are
    parsed into TranscriptEvents and handed on in arrival order; frames that
    fail to parse are logged and discarded.
    """

    def __init__(self,
                 channel: AbstractDuplexChannel,
                 on_event: EventCallback,
                 on_disconnect: Optional[DisconnectCallback] = None):
        """Initialize transport.

        Args:
            channel: Unconnected duplex channel
            on_event: Receives every valid TranscriptEvent
            on_disconnect: Called once if the channel is lost while open
        """
        self.channel = channel
        self.on_event = on_event
        self.on_disconnect = on_disconnect
        self.state = TransportState.IDLE
        self.stats = TransportStats()

        channel.on_message(self._on_message)
        channel.on_close(self._on_channel_closed)

    @property
    def is_open(self) -> bool:
        return self.state is TransportState.OPEN

    @property
    def is_released(self) -> bool:
        return self.state is TransportState.CLOSED and self.channel.is_released

    async def open(self, endpoint: str) -> AbstractDuplexChannel:
        """Connect the channel.

        Raises:
            TransportError: Connection failed or close() was called meanwhile
        """
        if self.state is not TransportState.IDLE:
            raise TransportError(f"Cannot open transport in state {self.state.value}")

        self.state = TransportState.CONNECTING
        try:
            await self.channel.connect(endpoint)
        except TransportError:
            self.state = TransportState.CLOSED
            raise

        if self.state is not TransportState.CONNECTING:
            self.channel.close()
            raise TransportError("Transport closed while connecting", {"endpoint": endpoint})

        self.state = TransportState.OPEN
        return self.channel

    def send(self, data: bytes) -> None:
        if self.state is not TransportState.OPEN:
            self.stats.dropped_chunks += 1
            logger.debug(f"Dropped {len(data)} byte chunk, transport {self.state.value}")
            return
        self.channel.send(data)
        self.stats.sent_chunks += 1

    def close(self) -> None:
        if self.state is TransportState.CLOSED:
            return
        self.state = TransportState.CLOSED
        self.channel.close()
        logger.info(f"Transport closed: sent={self.stats.sent_chunks}, "
                    f"dropped={self.stats.dropped_chunks}, "
                    f"received={self.stats.received_messages}, "
                    f"malformed={self.stats.malformed_messages}")

    async def wait_closed(self) -> None:
        await self.channel.wait_closed()

    def _on_message(self, raw: Union[str, bytes]) -> None:
        if self.state is not TransportState.OPEN:
            logger.debug("Ignoring message received while transport not open")
            return

        try:
            event = parse_transcript_event(raw)
        except MalformedMessage as e:
            self.stats.malformed_messages += 1
            logger.warning(f"Discarding malformed message: {e} (raw={str(raw)[:200]!r})")
            return

        self.stats.received_messages += 1
        try:
            self.on_event(event)
        except Exception as e:
            logger.error(f"Unhandled exception in transcript event handler: {e}", exc_info=True)

    def _on_channel_closed(self, error: TransportError) -> None:
        if self.state is TransportState.CLOSED:
            return
        self.state = TransportState.CLOSED
        logger.error(f"Transport lost: {error}")
        if self.on_disconnect is not None:
            self.on_disconnect(error)
