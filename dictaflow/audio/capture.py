"""PyAudio microphone capture emitting fixed-cadence chunks onto the event loop."""

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

import pyaudio

from .base import AbstractAudioCapture
from ..errors import AudioError, CodecUnsupported, PermissionDenied
from ..models.audio import AudioStats


logger = logging.getLogger(__name__)

# The single encoding sent to the STT service: 16-bit little-endian mono PCM.
ENCODING = "LINEAR16"
DEFAULT_SAMPLE_RATE = 16000
DEFAULT_CHUNK_DURATION_MS = 250


class CaptureState(Enum):
    INACTIVE = "inactive"
    ACQUIRING = "acquiring"
    ACTIVE = "active"
    PAUSED = "paused"


class PyAudioCapture(AbstractAudioCapture):
    """Microphone capture backed by a PyAudio stream in callback mode.

    PortAudio calls back on its own thread once per chunk; every buffer is
    handed to the asyncio loop with ``call_soon_threadsafe`` so chunk
    delivery, like everything else in the session, happens on the loop.
    """

    def __init__(
        self,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        channels: int = 1,
        chunk_duration_ms: int = DEFAULT_CHUNK_DURATION_MS,
        input_device_index: Optional[int] = None,
        format: int = pyaudio.paInt16,
    ):
        """Initialize audio capture with specified parameters.

        Args:
            sample_rate: Audio sample rate (16kHz for speech recognition)
            channels: Number of audio channels (1 for mono)
            chunk_duration_ms: Audio duration covered by each emitted chunk
            input_device_index: PyAudio device index, default input device if None
            format: PyAudio sample format (16-bit signed int)
        """
        super().__init__()
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_duration_ms = chunk_duration_ms
        self.frames_per_chunk = int(sample_rate * chunk_duration_ms / 1000)
        self.input_device_index = input_device_index
        self.format = format

        self._state = CaptureState.INACTIVE
        # Bumped by stop() so a late device acquisition can tell it is stale
        self._generation = 0
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stream: Optional[pyaudio.Stream] = None
        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.start_time: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self._state is CaptureState.ACTIVE

    @property
    def is_paused(self) -> bool:
        return self._state is CaptureState.PAUSED

    async def start(self) -> None:
        """Open the microphone off-loop, then start emitting chunks."""
        if self._state is not CaptureState.INACTIVE:
            logger.warning("Audio capture already started")
            return

        self._loop = asyncio.get_running_loop()
        self._state = CaptureState.ACQUIRING
        generation = self._generation
        logger.info("Requesting microphone access")

        opening = self._loop.run_in_executor(None, self._open_audio_stream)
        try:
            pyaudio_instance, stream = await asyncio.shield(opening)
        except asyncio.CancelledError:
            # The executor keeps running; whatever it opens is closed on arrival
            opening.add_done_callback(self._release_abandoned)
            if generation == self._generation:
                self._state = CaptureState.INACTIVE
            raise
        except AudioError:
            if generation == self._generation:
                self._state = CaptureState.INACTIVE
            raise

        if generation != self._generation:
            logger.info("Capture stopped while acquiring the microphone, releasing device")
            self._close_audio_stream(pyaudio_instance, stream)
            return

        self.pyaudio_instance = pyaudio_instance
        self._stream = stream
        self.start_time = datetime.now()
        self.total_chunks = 0
        self.dropped_chunks = 0
        stream.start_stream()
        self._state = CaptureState.ACTIVE
        logger.info(f"Audio capture started: {self.sample_rate}Hz, "
                    f"{self.frames_per_chunk} frames/chunk ({self.chunk_duration_ms}ms)")

    def pause(self) -> None:
        if self._state is not CaptureState.ACTIVE:
            return
        try:
            self._stream.stop_stream()
        except OSError as e:
            raise AudioError(f"Failed to pause audio stream: {e}") from e
        self._state = CaptureState.PAUSED
        logger.info("Audio capture paused")

    def resume(self) -> None:
        if self._state is not CaptureState.PAUSED:
            return
        try:
            self._stream.start_stream()
        except OSError as e:
            raise AudioError(f"Failed to resume audio stream: {e}") from e
        self._state = CaptureState.ACTIVE
        logger.info("Audio capture resumed")

    def stop(self) -> None:
        """Release the stream and the PyAudio instance, whatever the state."""
        self._generation += 1
        stream, pyaudio_instance = self._stream, self.pyaudio_instance
        self._stream = None
        self.pyaudio_instance = None
        self._state = CaptureState.INACTIVE

        if stream is not None or pyaudio_instance is not None:
            logger.info(f"Audio capture stopped. Total chunks: {self.total_chunks}")
        self._close_audio_stream(pyaudio_instance, stream)

    def get_stats(self) -> AudioStats:
        """Get current capture statistics."""
        duration = 0.0
        if self.start_time:
            duration = (datetime.now() - self.start_time).total_seconds()

        return AudioStats(
            is_active=self.is_active,
            is_paused=self.is_paused,
            duration_seconds=duration,
            sample_rate=self.sample_rate,
            frames_per_chunk=self.frames_per_chunk,
            total_chunks=self.total_chunks,
            dropped_chunks=self.dropped_chunks,
        )

    def _open_audio_stream(self) -> Tuple[pyaudio.PyAudio, pyaudio.Stream]:
        """Runs in an executor thread: opening a device can block."""
        pyaudio_instance = pyaudio.PyAudio()
        try:
            device_index = self.input_device_index
            if device_index is None:
                device_index = pyaudio_instance.get_default_input_device_info()['index']

            pyaudio_instance.is_format_supported(
                self.sample_rate,
                input_device=device_index,
                input_channels=self.channels,
                input_format=self.format,
            )

            stream = pyaudio_instance.open(
                format=self.format,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                input_device_index=device_index,
                frames_per_buffer=self.frames_per_chunk,
                stream_callback=self._on_audio_buffer,
                start=False,
            )
        except ValueError as e:
            pyaudio_instance.terminate()
            raise CodecUnsupported(
                f"{ENCODING} at {self.sample_rate}Hz/{self.channels}ch is not supported: {e}"
            ) from e
        except OSError as e:
            pyaudio_instance.terminate()
            raise PermissionDenied(f"Microphone access failed: {e}") from e

        logger.debug(f"Audio stream opened on input device {device_index}")
        return pyaudio_instance, stream

    def _on_audio_buffer(self, in_data, frame_count, time_info, status_flags):
        """PortAudio thread: hand the buffer to the event loop."""
        loop = self._loop
        if loop is None:
            return (None, pyaudio.paComplete)
        try:
            loop.call_soon_threadsafe(self._emit_chunk, in_data)
        except RuntimeError:
            # Event loop closed while the stream was still running
            return (None, pyaudio.paComplete)
        return (None, pyaudio.paContinue)

    @classmethod
    def _release_abandoned(cls, opening: asyncio.Future) -> None:
        if opening.cancelled() or opening.exception() is not None:
            return
        logger.info("Start cancelled while acquiring the microphone, releasing device")
        cls._close_audio_stream(*opening.result())

    @staticmethod
    def _close_audio_stream(pyaudio_instance: Optional[pyaudio.PyAudio],
                            stream: Optional[pyaudio.Stream]) -> None:
        if stream is not None:
            try:
                stream.stop_stream()
                stream.close()
            except OSError as e:
                logger.warning(f"Error closing audio stream: {e}")
        if pyaudio_instance is not None:
            pyaudio_instance.terminate()

    def __del__(self):
        """Ensure the device is released on deletion."""
        if self._stream is not None:
            self.stop()
