"""Unit tests for DictationScreen key handling and rendering."""

import asyncio
import io

import pytest
from rich.console import Console

from dictaflow.errors import PermissionDenied
from dictaflow.models.session import SessionStatus
from dictaflow.services.session_controller import SessionController
from dictaflow.transcription.publisher import DictationPublisher
from dictaflow.ui.dictation_screen import DictationScreen, PLACEHOLDER

from conftest import TEST_ENDPOINT


@pytest.fixture
def screen(fakes):
    publisher = DictationPublisher()
    controller = SessionController(
        endpoint=TEST_ENDPOINT,
        capture_factory=fakes.capture,
        channel_factory=fakes.channel,
        on_transcript_change=publisher.get_transcript_callback(),
        on_submit=publisher.get_submit_callback(),
        on_status_change=publisher.get_status_callback(),
    )
    screen = DictationScreen(controller, console=Console(file=io.StringIO(), width=80))
    yield screen
    screen.close()


def render_text(screen) -> str:
    console = Console(file=io.StringIO(), width=80)
    console.print(screen.render())
    return console.file.getvalue()


async def press_start(screen):
    screen.handle_key("s")
    await asyncio.gather(*screen._tasks)


@pytest.mark.unit
class TestDictationScreen:
    """Test cases for DictationScreen."""

    def test_idle_panel_shows_placeholder(self, screen):
        output = render_text(screen)

        assert "IDLE" in output
        assert PLACEHOLDER in output

    @pytest.mark.asyncio
    async def test_start_key_starts_recording(self, screen, fakes):
        await press_start(screen)

        assert screen.controller.status is SessionStatus.RECORDING
        assert screen.status is SessionStatus.RECORDING
        assert "RECORDING" in render_text(screen)

    @pytest.mark.asyncio
    async def test_transcript_is_rendered(self, screen, fakes, make_message):
        await press_start(screen)

        fakes.channels[0].receive(make_message(interim_text="Lungs clear"))

        assert screen.transcript == "Lungs clear"
        assert "Lungs clear" in render_text(screen)

    @pytest.mark.asyncio
    async def test_pause_resume_and_stop_keys(self, screen):
        await press_start(screen)

        screen.handle_key("p")
        assert screen.status is SessionStatus.PAUSED

        screen.handle_key("r")
        assert screen.status is SessionStatus.RECORDING

        screen.handle_key("x")
        assert screen.status is SessionStatus.IDLE

    @pytest.mark.asyncio
    async def test_submit_key(self, screen, fakes, make_message):
        await press_start(screen)
        fakes.channels[0].receive(make_message(final_text="Patient stable", has_speech_ended=True))

        screen.handle_key("u")

        assert screen.last_submitted == "Patient stable"
        assert screen.transcript == ""
        assert "Submitted 14 chars" in render_text(screen)

    @pytest.mark.asyncio
    async def test_failed_start_shows_error(self, screen, fakes):
        fakes.capture_kwargs = {"start_error": PermissionDenied("Microphone access failed")}

        await press_start(screen)

        assert screen.status is SessionStatus.IDLE
        assert "Microphone access failed" in render_text(screen)

    @pytest.mark.asyncio
    async def test_quit_key_stops_session(self, screen):
        await press_start(screen)
        screen._quit = asyncio.Event()

        screen.handle_key("q")

        assert screen.controller.status is SessionStatus.IDLE
        assert screen._quit.is_set()

    @pytest.mark.asyncio
    async def test_quit_hook_runs_before_stop(self, screen, fakes, make_message):
        seen = []
        screen.on_quit = lambda: seen.append((screen.controller.status, screen.transcript))
        await press_start(screen)
        fakes.channels[0].receive(make_message(interim_text="Lungs clear"))

        screen.handle_key("q")

        assert seen == [(SessionStatus.RECORDING, "Lungs clear")]
        assert screen.controller.status is SessionStatus.IDLE

    def test_unknown_key_is_ignored(self, screen):
        screen.handle_key("z")
        assert screen.status is SessionStatus.IDLE
