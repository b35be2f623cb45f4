"""Session controller that manages the dictation lifecycle."""

import asyncio
import logging
from functools import partial
from typing import Callable, List, Optional

from ..audio.base import AbstractAudioCapture
from ..errors import AudioError, DictationError, TransportError
from ..models.events import StatusEvent, TranscriptEvent
from ..models.session import DictationSession, SessionStatus
from ..transcription.reconciler import TranscriptReconciler
from ..transport.base import AbstractDuplexChannel
from ..transport.stream import StreamTransport

logger = logging.getLogger(__name__)


class SessionController:
    """Start/pause/resume/stop state machine for one dictation at a time.

    The controller exclusively owns the audio capture, the transport and its
    channel of the current session. Commands that are not valid in the
    current state are no-ops and return False.
    """

    def __init__(self,
                 endpoint: str,
                 capture_factory: Callable[[], AbstractAudioCapture],
                 channel_factory: Callable[[], AbstractDuplexChannel],
                 on_transcript_change: Optional[Callable[[str], None]] = None,
                 on_submit: Optional[Callable[[str], None]] = None,
                 on_status_change: Optional[Callable[[StatusEvent], None]] = None):
        """Initialize session controller.

        Args:
            endpoint: STT service endpoint, credentials already applied by the
                channel factory
            capture_factory: Builds a fresh audio capture per session
            channel_factory: Builds a fresh unconnected channel per session
            on_transcript_change: Receives the reconciled text on every update
            on_submit: Receives the finalized text when the user submits
            on_status_change: Receives every status change, with the error
                for failed starts and lost connections
        """
        self.endpoint = endpoint
        self.capture_factory = capture_factory
        self.channel_factory = channel_factory
        self.on_transcript_change = on_transcript_change
        self.on_submit = on_submit
        self.on_status_change = on_status_change

        self.reconciler = TranscriptReconciler(callback=self._publish_transcript)
        self.session: Optional[DictationSession] = None
        self._closing: List[StreamTransport] = []

    @property
    def status(self) -> SessionStatus:
        return self.session.status if self.session else SessionStatus.IDLE

    @property
    def text(self) -> str:
        return self.reconciler.text

    async def start(self) -> bool:
        """Open the transport, then the microphone, then start recording."""
        if self.session is not None:
            logger.warning(f"Start ignored, session already {self.status.value}")
            return False

        session = DictationSession()
        self.session = session
        self.reconciler.reset()
        self._set_status(session, SessionStatus.CONNECTING)
        logger.info(f"Starting dictation session {session.session_id}")

        try:
            transport = StreamTransport(
                self.channel_factory(),
                on_event=partial(self._on_transcript_event, session),
                on_disconnect=partial(self._on_transport_lost, session),
            )
            session.transport = transport
            await transport.open(self.endpoint)
            if not self._is_connecting(session):
                return False

            capture = self.capture_factory()
            session.capture = capture
            capture.on_chunk(partial(self._on_audio_chunk, session))
            await capture.start()
            if not self._is_connecting(session):
                # Stopped while the microphone was being acquired
                capture.stop()
                return False
        except asyncio.CancelledError:
            if self.session is session:
                self._teardown(session, reset_transcript=True)
            raise
        except Exception as e:
            if not self._is_connecting(session):
                logger.info(f"Session {session.session_id} ended before start completed: {e}")
                return False
            if isinstance(e, DictationError):
                error = e
                logger.error(f"Failed to start dictation: {e}")
            else:
                error = DictationError(f"Failed to start dictation: {e}")
                logger.error(f"Unexpected error starting session: {e}", exc_info=True)
            self._teardown(session, reset_transcript=True, error=error)
            return False

        self._set_status(session, SessionStatus.RECORDING)
        return True

    def pause(self) -> bool:
        session = self.session
        if session is None or session.status is not SessionStatus.RECORDING:
            return False
        try:
            session.capture.pause()
        except AudioError as e:
            self._fail(session, e)
            return False
        self._set_status(session, SessionStatus.PAUSED)
        return True

    def resume(self) -> bool:
        session = self.session
        if session is None or session.status is not SessionStatus.PAUSED:
            return False
        try:
            session.capture.resume()
        except AudioError as e:
            self._fail(session, e)
            return False
        self._set_status(session, SessionStatus.RECORDING)
        return True

    def stop(self) -> bool:
        """Release every resource of the current session and return to IDLE."""
        session = self.session
        if session is None:
            return False
        logger.info(f"Stopping dictation session {session.session_id}")
        self._teardown(session, reset_transcript=True)
        return True

    def submit(self) -> bool:
        """Hand the reconciled text to the consumer, then reset."""
        session = self.session
        if session is None or session.status not in (SessionStatus.RECORDING, SessionStatus.PAUSED):
            return False
        text = self.reconciler.text
        if not text:
            return False

        logger.info(f"Submitting dictation ({len(text)} chars) from session {session.session_id}")
        if self.on_submit is not None:
            try:
                self.on_submit(text)
            except Exception as e:
                logger.error(f"Submit handler failed: {e}", exc_info=True)
        self._teardown(session, reset_transcript=True)
        return True

    async def wait_closed(self) -> None:
        """Wait for channels released by earlier stops to finish closing."""
        closing, self._closing = self._closing, []
        for transport in closing:
            await transport.wait_closed()

    def _is_connecting(self, session: DictationSession) -> bool:
        return self.session is session and session.status is SessionStatus.CONNECTING

    def _on_audio_chunk(self, session: DictationSession, data: bytes) -> None:
        if self.session is not session or session.status is not SessionStatus.RECORDING:
            return
        session.transport.send(data)

    def _on_transcript_event(self, session: DictationSession, event: TranscriptEvent) -> None:
        if self.session is not session:
            return
        self.reconciler.apply(event)

    def _on_transport_lost(self, session: DictationSession, error: TransportError) -> None:
        if self.session is not session:
            return
        # No reconnection: the consumer decides whether to start again
        self._fail(session, error)

    def _fail(self, session: DictationSession, error: DictationError) -> None:
        logger.error(f"Session {session.session_id} failed: {error}")
        self._teardown(session, reset_transcript=False, error=error)

    def _teardown(self, session: DictationSession, reset_transcript: bool,
                  error: Optional[Exception] = None) -> None:
        """Release capture and transport, then settle in IDLE."""
        if self.session is not session:
            return
        self.session = None
        self._set_status(session, SessionStatus.STOPPED)

        capture, transport = session.capture, session.transport
        session.capture = None
        session.transport = None
        if capture is not None:
            self._release("audio capture", capture.stop)
        if transport is not None:
            self._release("transport", transport.close)
            self._closing = [t for t in self._closing if not t.is_released]
            self._closing.append(transport)

        if reset_transcript:
            self.reconciler.reset()
        self._set_status(session, SessionStatus.IDLE, error)

    @staticmethod
    def _release(name: str, release: Callable[[], None]) -> None:
        try:
            release()
        except Exception as e:
            logger.warning(f"Error releasing {name}: {e}", exc_info=True)

    def _set_status(self, session: DictationSession, status: SessionStatus,
                    error: Optional[Exception] = None) -> None:
        session.status = status
        logger.debug(f"Session {session.session_id} -> {status.value}")
        if self.on_status_change is None:
            return
        try:
            self.on_status_change(StatusEvent(session_id=session.session_id, status=status, error=error))
        except Exception as e:
            logger.error(f"Status handler failed: {e}", exc_info=True)

    def _publish_transcript(self, text: str) -> None:
        if self.on_transcript_change is None:
            return
        try:
            self.on_transcript_change(text)
        except Exception as e:
            logger.error(f"Transcript handler failed: {e}", exc_info=True)
