"""Session-related data models."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..audio.base import AbstractAudioCapture
    from ..transport.stream import StreamTransport


class SessionStatus(Enum):
    """Lifecycle states of a dictation session."""
    IDLE = "idle"
    CONNECTING = "connecting"
    RECORDING = "recording"
    PAUSED = "paused"
    STOPPED = "stopped"


@dataclass
class DictationSession:
    """One start-to-stop dictation attempt and the resources it owns."""
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: SessionStatus = SessionStatus.IDLE
    started_at: datetime = field(default_factory=datetime.now)
    capture: Optional["AbstractAudioCapture"] = None
    transport: Optional["StreamTransport"] = None
