"""Audio capture module."""

from .base import AbstractAudioCapture
from .capture import PyAudioCapture

__all__ = [
    'AbstractAudioCapture',
    'PyAudioCapture'
]
