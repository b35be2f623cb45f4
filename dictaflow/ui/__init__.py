"""Terminal user interface."""

from .dictation_screen import DictationScreen
from .keyboard_input import KeyboardInputHandler

__all__ = ["DictationScreen", "KeyboardInputHandler"]
