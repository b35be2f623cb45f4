"""Services layer for Dictaflow application logic."""

from .session_controller import SessionController
from .submission import DictationSubmitter
from .autosave import DebouncedAutosave, write_draft

__all__ = [
    "SessionController",
    "DictationSubmitter",
    "DebouncedAutosave",
    "write_draft",
]
