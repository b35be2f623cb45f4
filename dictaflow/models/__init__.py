"""Data models for the Dictaflow application."""

from .audio import AudioStats
from .events import TranscriptEvent, StatusEvent
from .session import SessionStatus, DictationSession
from .transcription import ReconciliationState
from .transport import TransportState, TransportStats

__all__ = [
    "AudioStats",
    "TranscriptEvent",
    "StatusEvent",
    "SessionStatus",
    "DictationSession",
    "ReconciliationState",
    "TransportState",
    "TransportStats",
]
