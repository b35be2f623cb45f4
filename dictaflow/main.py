"""Main application entry point for Dictaflow."""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Optional

from pubsub import pub

from dictaflow import __version__
from dictaflow.audio.capture import PyAudioCapture
from dictaflow.services.autosave import DebouncedAutosave, write_draft
from dictaflow.services.session_controller import SessionController
from dictaflow.services.submission import DictationSubmitter
from dictaflow.transcription.publisher import DictationPublisher, TRANSCRIPT_TOPIC
from dictaflow.transport.websocket import AiohttpWebSocketChannel
from dictaflow.ui.dictation_screen import DictationScreen

from .config import DictaflowConfig

logger = logging.getLogger(__name__)


class DictationApp:
    """Wires configuration, the session controller and the terminal panel."""

    def __init__(self, config_path: str, endpoint: Optional[str] = None, log_level: Optional[str] = None):
        # Load configuration
        self.config = DictaflowConfig(config_path)
        # Set up logging (command line overrides config)
        setup_logging(self.config, log_level or self.config.get('logging.level', 'INFO'))
        self.endpoint = endpoint or self.config.get_stream_endpoint()

        self.publisher = DictationPublisher()
        self.submitter: Optional[DictationSubmitter] = None
        self.autosave: Optional[DebouncedAutosave] = None
        self.draft_path = self.config.get('autosave.file_path', 'data/dictation_draft.txt')

    def init(self) -> None:
        logger.info("Initializing services...")
        logger.info(f"Stream endpoint: {self.endpoint}")

        generate_url = self.config.get_generate_url()
        if generate_url:
            self.submitter = DictationSubmitter(
                generate_url,
                headers=self.config.get_stream_headers(),
                on_generated=self._on_generated,
                on_failed=self._on_submission_failed,
            )
            pub.subscribe(self.submitter.get_callback(), self.publisher.submit_topic)

        if self.config.get('autosave.enabled', False):
            self.autosave = DebouncedAutosave(
                lambda text: write_draft(self.draft_path, text),
                delay_seconds=self.config.get('autosave.delay_seconds', 10.0),
            )
            pub.subscribe(self._on_transcript, TRANSCRIPT_TOPIC)

        self.controller = SessionController(
            endpoint=self.endpoint,
            capture_factory=self._create_capture,
            channel_factory=self._create_channel,
            on_transcript_change=self.publisher.get_transcript_callback(),
            on_submit=self.publisher.get_submit_callback(),
            on_status_change=self.publisher.get_status_callback(),
        )
        self.screen = DictationScreen(self.controller, on_quit=self._save_draft)

    async def run(self) -> None:
        try:
            await self.screen.run()
        finally:
            await self.cleanup()

    async def cleanup(self) -> None:
        self._save_draft()
        self.controller.stop()
        await self.controller.wait_closed()
        if self.submitter:
            await self.submitter.wait_pending()
        self.screen.close()
        logger.info("Dictaflow shut down")

    def _create_capture(self) -> PyAudioCapture:
        return PyAudioCapture(
            sample_rate=self.config.get('audio.sample_rate', 16000),
            channels=self.config.get('audio.channels', 1),
            chunk_duration_ms=self.config.get('audio.chunk_duration_ms', 250),
            input_device_index=self.config.get('audio.input_device_index'),
        )

    def _create_channel(self) -> AiohttpWebSocketChannel:
        return AiohttpWebSocketChannel(
            headers=self.config.get_stream_headers(),
            heartbeat=self.config.get('stream.heartbeat_seconds'),
        )

    def _save_draft(self) -> None:
        """Write the pending autosave now, before stopping clears the transcript."""
        if self.autosave:
            self.autosave.flush()

    def _on_transcript(self, text: str) -> None:
        self.autosave(text)

    def _on_generated(self, content: str) -> None:
        logger.info(f"Generated report content received ({len(content)} chars)")
        output_path = self.config.get('api.output_file_path')
        if output_path:
            write_draft(output_path, content)

    def _on_submission_failed(self, text: str) -> None:
        logger.warning(f"Keeping failed dictation in {self.draft_path}")
        try:
            write_draft(self.draft_path, text)
        except OSError as e:
            logger.error(f"Could not save failed dictation: {e}")


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/dictaflow.log')
    console_output = config.get('logging.console_output', True)

    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    ))
    handlers.append(file_handler)

    # Console handler - warnings only, the panel owns the terminal
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("Dictaflow starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def main() -> None:
    """Main entry point for Dictaflow."""
    parser = argparse.ArgumentParser(
        description="Dictaflow - Real-time dictation",
        epilog="Keys: s=start, p=pause, r=resume, x=stop, u=submit, q=quit"
    )

    parser.add_argument(
        "--config",
        type=str,
        default="dictaflow.yaml",
        help="Path to configuration YAML file (default: dictaflow.yaml)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (overrides config)"
    )

    parser.add_argument(
        "--endpoint",
        type=str,
        help="WebSocket endpoint of the STT service (overrides config)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Dictaflow v{__version__}"
    )

    args = parser.parse_args()

    try:
        app = DictationApp(args.config, endpoint=args.endpoint, log_level=args.log_level)
        app.init()
        asyncio.run(app.run())
    except KeyboardInterrupt:
        print("\nGoodbye!")
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
