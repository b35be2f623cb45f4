"""Debounced autosave of the dictation draft."""

import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class DebouncedAutosave:
    """Saves the latest text once it has stopped changing for a while.

    Every call cancels the save scheduled by the previous one. Blank values
    are ignored (a pending save is still cancelled); saved values are trimmed.
    """

    def __init__(self, callback: Callable[[str], None], delay_seconds: float = 10.0):
        self.callback = callback
        self.delay_seconds = delay_seconds
        self._handle: Optional[asyncio.TimerHandle] = None
        self._pending: Optional[str] = None

    def __call__(self, value: str) -> None:
        self.cancel()
        text = value.strip()
        if not text:
            return
        self._pending = text
        self._handle = asyncio.get_running_loop().call_later(self.delay_seconds, self._fire)

    @property
    def has_pending(self) -> bool:
        return self._handle is not None

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._pending = None

    def flush(self) -> None:
        """Save the pending value now instead of waiting."""
        pending = self._pending
        self.cancel()
        if pending is None:
            return
        try:
            self.callback(pending)
        except OSError as e:
            logger.error(f"Autosave failed: {e}")

    def _fire(self) -> None:
        pending = self._pending
        self._handle = None
        self._pending = None
        try:
            self.callback(pending)
        except OSError as e:
            logger.error(f"Autosave failed: {e}")


def write_draft(file_path: str, text: str) -> None:
    """Write the dictation draft, creating parent directories."""
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text + "\n", encoding="utf-8")
    logger.debug(f"Draft saved to {path} ({len(text)} chars)")
