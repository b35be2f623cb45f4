"""Reconciliation of incremental transcript updates into one stable text.

The STT service sends a stream of updates, each carrying a final fragment,
an interim fragment and a flag telling whether the utterance has ended.
Only updates with ``has_speech_ended`` commit text; every other update is
rendered on top of the committed text without changing it. Because the
uncommitted part is recomputed from scratch on each update, receiving the
same non-final update twice yields the same text twice.
"""

import logging
from typing import Callable, Optional

from ..models.events import TranscriptEvent
from ..models.transcription import ReconciliationState

logger = logging.getLogger(__name__)


def join_non_empty(left: str, right: str) -> str:
    """Join two fragments with a single space, skipping empty ones."""
    if not right:
        return left
    if not left:
        return right
    return f"{left} {right}"


class TranscriptReconciler:
    """Merges TranscriptEvents into the text shown to the consumer."""

    def __init__(self, callback: Optional[Callable[[str], None]] = None):
        """Initialize reconciler.

        Args:
            callback: Receives the reconciled text after every update
        """
        self.callback = callback
        self.accumulated_final = ""
        self.pending_final = ""
        self.current_interim = ""

    @property
    def text(self) -> str:
        """The reconciled text as last published."""
        committed = join_non_empty(self.accumulated_final, self.pending_final)
        return join_non_empty(committed, self.current_interim)

    def apply(self, event: TranscriptEvent) -> str:
        """Apply one update and publish the resulting text."""
        if event.has_speech_ended:
            self.accumulated_final = join_non_empty(self.accumulated_final, event.final_text)
            self.pending_final = ""
            self.current_interim = ""
            logger.debug(f"Committed final text ({len(self.accumulated_final)} chars)")
        else:
            self.pending_final = event.final_text
            self.current_interim = event.interim_text

        text = self.text
        self._publish(text)
        return text

    def reset(self) -> None:
        """Clear all state; publishes an empty text if anything was shown."""
        had_text = bool(self.text)
        self.accumulated_final = ""
        self.pending_final = ""
        self.current_interim = ""
        if had_text:
            self._publish("")

    def snapshot(self) -> ReconciliationState:
        return ReconciliationState(
            accumulated_final=self.accumulated_final,
            pending_final=self.pending_final,
            current_interim=self.current_interim,
        )

    def _publish(self, text: str) -> None:
        if self.callback is not None:
            self.callback(text)
