"""Terminal dictation panel: live transcript, status and single-key commands."""

import asyncio
import logging
from typing import Callable, Optional, Set

from pubsub import pub
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from .keyboard_input import KeyboardInputHandler
from ..models.events import StatusEvent
from ..models.session import SessionStatus
from ..services.session_controller import SessionController
from ..transcription.publisher import TRANSCRIPT_TOPIC, STATUS_TOPIC, SUBMIT_TOPIC

logger = logging.getLogger(__name__)

PLACEHOLDER = "Start dictating....."

STATUS_STYLES = {
    SessionStatus.IDLE: ("IDLE", "bold yellow"),
    SessionStatus.CONNECTING: ("CONNECTING", "bold cyan"),
    SessionStatus.RECORDING: ("RECORDING", "bold red"),
    SessionStatus.PAUSED: ("PAUSED", "bold magenta"),
    SessionStatus.STOPPED: ("STOPPED", "bold yellow"),
}

QUIT_KEYS = ("q", "\x03")


class DictationScreen:
    """Rich panel driving a SessionController from the keyboard.

    The screen listens on the dictation pubsub topics, so the controller's
    callbacks must be wired to a DictationPublisher.

    ``on_quit`` is called on the quit key before the session is stopped.
    """

    def __init__(self, controller: SessionController, console: Optional[Console] = None,
                 on_quit: Optional[Callable[[], None]] = None):
        self.controller = controller
        self.on_quit = on_quit
        self.console = console or Console()
        self.transcript = ""
        self.status = SessionStatus.IDLE
        self.last_error: Optional[str] = None
        self.last_submitted: Optional[str] = None

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._live: Optional[Live] = None
        self._quit: Optional[asyncio.Event] = None
        self._tasks: Set[asyncio.Task] = set()

        pub.subscribe(self._on_transcript, TRANSCRIPT_TOPIC)
        pub.subscribe(self._on_status, STATUS_TOPIC)
        pub.subscribe(self._on_submit, SUBMIT_TOPIC)

    def render(self) -> Panel:
        label, style = STATUS_STYLES[self.status]
        header = Text.assemble(("● ", style), (label, style))
        body = Text(self.transcript or PLACEHOLDER, style="" if self.transcript else "dim")

        parts = [header, Text(), body, Text()]
        if self.last_error:
            parts.append(Text(f"Error: {self.last_error}", style="red"))
        if self.last_submitted:
            parts.append(Text(f"Submitted {len(self.last_submitted)} chars", style="green"))
        parts.append(Text.from_markup(
            "[bold green]s[/] start  [bold magenta]p[/] pause  [bold cyan]r[/] resume  "
            "[bold yellow]x[/] stop  [bold blue]u[/] submit  [bold red]q[/] quit"
        ))
        return Panel(Group(*parts), title="Dictation", border_style="blue")

    async def run(self) -> None:
        """Show the panel until the quit key is pressed."""
        self._loop = asyncio.get_running_loop()
        self._quit = asyncio.Event()
        input_handler = KeyboardInputHandler(self._on_key)

        with Live(self.render(), console=self.console, refresh_per_second=8) as live:
            self._live = live
            input_handler.start()
            try:
                await self._quit.wait()
            finally:
                input_handler.stop()
                self._live = None

        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def close(self) -> None:
        """Unsubscribe from the dictation topics."""
        pub.unsubscribe(self._on_transcript, TRANSCRIPT_TOPIC)
        pub.unsubscribe(self._on_status, STATUS_TOPIC)
        pub.unsubscribe(self._on_submit, SUBMIT_TOPIC)

    def handle_key(self, key: str) -> None:
        """Apply one command key. Runs on the event loop."""
        if key in QUIT_KEYS:
            # Runs while the transcript is still intact, stop() clears it
            if self.on_quit is not None:
                self.on_quit()
            self.controller.stop()
            if self._quit is not None:
                self._quit.set()
            return

        if key == "s":
            self.last_error = None
            task = asyncio.get_running_loop().create_task(self.controller.start())
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        elif key == "p":
            self.controller.pause()
        elif key == "r":
            self.controller.resume()
        elif key == "x":
            self.controller.stop()
        elif key in ("u", "\r"):
            self.controller.submit()
        self._refresh()

    def _on_key(self, key: str) -> bool:
        """Input thread: forward the key to the loop."""
        self._loop.call_soon_threadsafe(self.handle_key, key)
        return key not in QUIT_KEYS

    def _on_transcript(self, text: str) -> None:
        self.transcript = text
        self._refresh()

    def _on_status(self, event: StatusEvent) -> None:
        self.status = event.status
        if event.error is not None:
            self.last_error = str(event.error)
        self._refresh()

    def _on_submit(self, text: str) -> None:
        self.last_submitted = text
        self._refresh()

    def _refresh(self) -> None:
        if self._live is not None:
            self._live.update(self.render())
