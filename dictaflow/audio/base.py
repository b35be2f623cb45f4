"""Abstract base class for microphone capture."""

from abc import ABC, abstractmethod
from typing import Callable, Optional
import logging

from ..models.audio import AudioStats

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[bytes], None]


class AbstractAudioCapture(ABC):
    """Microphone capture that emits encoded chunks on a fixed cadence.

    Chunks are delivered on the event-loop thread to the callback registered
    with :meth:`on_chunk`. Zero-length chunks and chunks that complete while
    capture is not active are dropped here.
    """

    def __init__(self):
        self._chunk_callback: Optional[ChunkCallback] = None
        self.total_chunks = 0
        self.dropped_chunks = 0

    def on_chunk(self, callback: Optional[ChunkCallback]) -> None:
        """Register the receiver of captured chunks."""
        self._chunk_callback = callback

    @abstractmethod
    async def start(self) -> None:
        """Acquire the microphone and begin chunked capture.

        Raises:
            PermissionDenied: The device could not be opened
            CodecUnsupported: The platform cannot capture the fixed encoding
        """
        pass

    @abstractmethod
    def pause(self) -> None:
        """Suspend chunk emission. No-op unless capture is active."""
        pass

    @abstractmethod
    def resume(self) -> None:
        """Continue chunk emission. No-op unless capture is paused."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Release the device. Always succeeds and may be called repeatedly."""
        pass

    @property
    @abstractmethod
    def is_active(self) -> bool:
        pass

    @property
    @abstractmethod
    def is_paused(self) -> bool:
        pass

    @abstractmethod
    def get_stats(self) -> AudioStats:
        pass

    def _emit_chunk(self, data: bytes) -> None:
        """Forward one chunk to the registered callback."""
        if not data:
            return
        if not self.is_active or self._chunk_callback is None:
            self.dropped_chunks += 1
            return

        self.total_chunks += 1
        self._chunk_callback(data)
