"""Abstract base class for duplex channels to the STT service."""

from abc import ABC, abstractmethod
from typing import Callable, Optional
import logging

from ..errors import TransportError

logger = logging.getLogger(__name__)

MessageCallback = Callable[[str], None]
CloseCallback = Callable[[TransportError], None]


class AbstractDuplexChannel(ABC):
    """A persistent connection carrying binary frames out and text frames in.

    Inbound text frames go to the :meth:`on_message` callback in arrival
    order. If the peer closes the connection or it fails while open, the
    :meth:`on_close` callback is called once with a TransportError. A local
    :meth:`close` never triggers it.
    """

    def __init__(self):
        self._message_callback: Optional[MessageCallback] = None
        self._close_callback: Optional[CloseCallback] = None

    def on_message(self, callback: Optional[MessageCallback]) -> None:
        self._message_callback = callback

    def on_close(self, callback: Optional[CloseCallback]) -> None:
        self._close_callback = callback

    @abstractmethod
    async def connect(self, endpoint: str) -> None:
        """Open the connection.

        Raises:
            TransportError: The connection could not be established, or
                close() was called before it completed
        """
        pass

    @abstractmethod
    def send(self, data: bytes) -> None:
        """Queue a binary frame. Frames are written in call order."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the channel. Idempotent; the handshake may finish later."""
        pass

    @abstractmethod
    async def wait_closed(self) -> None:
        """Wait for a close started by close() to finish."""
        pass

    @property
    @abstractmethod
    def is_open(self) -> bool:
        pass

    @property
    @abstractmethod
    def is_released(self) -> bool:
        """True once the connection is gone and wait_closed() has nothing left to wait for."""
        pass

    def _dispatch_message(self, text: str) -> None:
        if self._message_callback is not None:
            self._message_callback(text)

    def _dispatch_close(self, error: TransportError) -> None:
        if self._close_callback is not None:
            self._close_callback(error)
