"""Exception hierarchy for the dictation pipeline."""

from typing import Any, Dict, Optional


class DictationError(Exception):
    """Base exception for Dictaflow."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class AudioError(DictationError):
    """Microphone capture errors. Terminal for the current start attempt."""
    pass


class PermissionDenied(AudioError):
    """The microphone could not be opened (access refused or no input device)."""
    pass


class CodecUnsupported(AudioError):
    """The platform cannot capture audio in the fixed encoding."""
    pass


class TransportError(DictationError):
    """The duplex connection failed to open or was dropped."""
    pass


class MalformedMessage(DictationError):
    """An inbound frame is not a valid transcript message."""

    def __init__(self, message: str, raw: Any = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.raw = raw


class SubmissionError(DictationError):
    """The finalized dictation could not be submitted."""
    pass
