"""Duplex transport to the speech-to-text service."""

from .base import AbstractDuplexChannel
from .messages import parse_transcript_event
from .stream import StreamTransport
from .websocket import AiohttpWebSocketChannel

__all__ = [
    "AbstractDuplexChannel",
    "AiohttpWebSocketChannel",
    "StreamTransport",
    "parse_transcript_event",
]
