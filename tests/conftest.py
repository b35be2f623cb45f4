"""Pytest configuration and fixtures for Dictaflow tests."""

import asyncio
import json
import logging
import tempfile
from typing import List, Optional
from unittest.mock import Mock, patch

import numpy as np
import pytest
from pubsub import pub

from dictaflow.audio.base import AbstractAudioCapture
from dictaflow.errors import TransportError
from dictaflow.models.audio import AudioStats
from dictaflow.services.session_controller import SessionController
from dictaflow.transport.base import AbstractDuplexChannel


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

TEST_ENDPOINT = "ws://stt.test/transcribe"


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without I/O")
    config.addinivalue_line("markers", "integration: tests against a local aiohttp server")
    config.addinivalue_line("markers", "hardware: tests that need a real microphone")


def transcript_message(final_text: str = "", interim_text: str = "", has_speech_ended: bool = False) -> str:
    """Build one inbound frame the way the STT service sends it."""
    return json.dumps({
        "finalText": final_text,
        "interimText": interim_text,
        "hasSpeechEnded": has_speech_ended,
    })


class FakeAudioCapture(AbstractAudioCapture):
    """In-memory capture; tests push chunks with emit()."""

    def __init__(self, start_error: Optional[Exception] = None, gate: Optional[asyncio.Event] = None):
        super().__init__()
        self.start_error = start_error
        self.gate = gate
        self.state = "inactive"
        self.start_calls = 0
        self.stop_calls = 0
        self.pause_error: Optional[Exception] = None

    async def start(self) -> None:
        self.start_calls += 1
        stops_before = self.stop_calls
        self.state = "acquiring"
        if self.gate is not None:
            await self.gate.wait()
        if self.start_error is not None:
            self.state = "inactive"
            raise self.start_error
        if self.stop_calls != stops_before:
            return
        self.state = "active"

    def pause(self) -> None:
        if self.pause_error is not None:
            raise self.pause_error
        if self.state == "active":
            self.state = "paused"

    def resume(self) -> None:
        if self.state == "paused":
            self.state = "active"

    def stop(self) -> None:
        self.stop_calls += 1
        self.state = "inactive"

    @property
    def is_active(self) -> bool:
        return self.state == "active"

    @property
    def is_paused(self) -> bool:
        return self.state == "paused"

    def get_stats(self) -> AudioStats:
        return AudioStats(
            is_active=self.is_active,
            is_paused=self.is_paused,
            duration_seconds=0.0,
            sample_rate=16000,
            frames_per_chunk=4000,
            total_chunks=self.total_chunks,
            dropped_chunks=self.dropped_chunks,
        )

    def emit(self, data: bytes) -> None:
        self._emit_chunk(data)


class FakeDuplexChannel(AbstractDuplexChannel):
    """In-memory channel; tests push frames with receive() and drop it with drop()."""

    def __init__(self, connect_error: Optional[Exception] = None, gate: Optional[asyncio.Event] = None):
        super().__init__()
        self.connect_error = connect_error
        self.gate = gate
        self.endpoint: Optional[str] = None
        self.sent: List[bytes] = []
        self.connected = False
        self.closed = False
        self.close_calls = 0

    async def connect(self, endpoint: str) -> None:
        self.endpoint = endpoint
        if self.gate is not None:
            await self.gate.wait()
        if self.connect_error is not None:
            raise self.connect_error
        if self.closed:
            raise TransportError("Channel closed while connecting")
        self.connected = True

    def send(self, data: bytes) -> None:
        self.sent.append(data)

    def close(self) -> None:
        self.close_calls += 1
        self.closed = True

    async def wait_closed(self) -> None:
        pass

    @property
    def is_open(self) -> bool:
        return self.connected and not self.closed

    @property
    def is_released(self) -> bool:
        return not self.is_open

    def receive(self, text: str) -> None:
        self._dispatch_message(text)

    def drop(self, error: Optional[TransportError] = None) -> None:
        self.closed = True
        self._dispatch_close(error or TransportError("Connection closed by server"))


class FakeFactories:
    """Capture and channel factories that remember what they built."""

    def __init__(self):
        self.captures: List[FakeAudioCapture] = []
        self.channels: List[FakeDuplexChannel] = []
        self.capture_kwargs = {}
        self.channel_kwargs = {}

    def capture(self) -> FakeAudioCapture:
        capture = FakeAudioCapture(**self.capture_kwargs)
        self.captures.append(capture)
        return capture

    def channel(self) -> FakeDuplexChannel:
        channel = FakeDuplexChannel(**self.channel_kwargs)
        self.channels.append(channel)
        return channel


class ControllerRecorder:
    """Collects everything a SessionController reports."""

    def __init__(self):
        self.transcripts: List[str] = []
        self.submits: List[str] = []
        self.statuses = []

    def on_transcript_change(self, text: str) -> None:
        self.transcripts.append(text)

    def on_submit(self, text: str) -> None:
        self.submits.append(text)

    def on_status_change(self, event) -> None:
        self.statuses.append(event)

    @property
    def status_values(self):
        return [event.status for event in self.statuses]


@pytest.fixture
def fakes():
    return FakeFactories()


@pytest.fixture
def recorder():
    return ControllerRecorder()


@pytest.fixture
def controller(fakes, recorder):
    """SessionController wired to fake capture/channel factories."""
    return SessionController(
        endpoint=TEST_ENDPOINT,
        capture_factory=fakes.capture,
        channel_factory=fakes.channel,
        on_transcript_change=recorder.on_transcript_change,
        on_submit=recorder.on_submit,
        on_status_change=recorder.on_status_change,
    )


@pytest.fixture(autouse=True)
def clean_pubsub():
    """Drop pubsub listeners left by a test."""
    yield
    pub.unsubAll()


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def sample_audio_chunk():
    """One 250ms chunk of 16-bit 16kHz mono audio (sine wave)."""
    sample_rate = 16000
    samples = sample_rate // 4
    t = np.linspace(0, samples / sample_rate, samples, False)
    wave_data = np.sin(2 * np.pi * 440 * t)

    # Convert to 16-bit integers
    audio_data = (wave_data * 32767).astype(np.int16)
    return audio_data.tobytes()


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        # Configure mock stream
        mock_stream.start_stream.return_value = None
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        # Configure mock PyAudio instance
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.is_format_supported.return_value = True
        mock_pyaudio_instance.get_default_input_device_info.return_value = {'index': 0, 'name': 'Mock Mic'}

        # Configure mock PyAudio class
        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


@pytest.fixture
def make_message():
    """Factory for inbound transcript frames."""
    return transcript_message


def pytest_collection_modifyitems(config, items):
    """Hardware tests only run when selected with ``-m hardware``."""
    if "hardware" in (config.getoption("markexpr") or ""):
        return
    skip_hardware = pytest.mark.skip(reason="needs a microphone, run with -m hardware")
    for item in items:
        if "hardware" in item.keywords:
            item.add_marker(skip_hardware)
