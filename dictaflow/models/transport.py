"""Transport-related data models."""

from dataclasses import dataclass
from enum import Enum


class TransportState(Enum):
    """Connection state of a StreamTransport."""
    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


@dataclass
class TransportStats:
    """Transport counters for one session."""
    sent_chunks: int = 0
    dropped_chunks: int = 0
    received_messages: int = 0
    malformed_messages: int = 0
