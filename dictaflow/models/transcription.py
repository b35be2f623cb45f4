"""Transcript reconciliation models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ReconciliationState:
    """Snapshot of the reconciler.

    ``accumulated_final`` only grows between resets. ``pending_final`` is the
    final fragment of the latest non-final event; it is shown but not yet
    committed.
    """
    accumulated_final: str = ""
    pending_final: str = ""
    current_interim: str = ""
