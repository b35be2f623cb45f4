"""Audio-related data models."""

from dataclasses import dataclass


@dataclass
class AudioStats:
    """Audio capture statistics."""
    is_active: bool
    is_paused: bool
    duration_seconds: float
    sample_rate: int
    frames_per_chunk: int
    total_chunks: int
    dropped_chunks: int
