"""Transcript reconciliation and publishing."""

from .reconciler import TranscriptReconciler, join_non_empty
from .publisher import DictationPublisher, TRANSCRIPT_TOPIC, SUBMIT_TOPIC, STATUS_TOPIC

__all__ = [
    "TranscriptReconciler",
    "join_non_empty",
    "DictationPublisher",
    "TRANSCRIPT_TOPIC",
    "SUBMIT_TOPIC",
    "STATUS_TOPIC",
]
