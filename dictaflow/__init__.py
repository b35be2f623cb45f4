"""Dictaflow: real-time dictation over a streaming speech-to-text connection."""

__version__ = "0.1.0"
