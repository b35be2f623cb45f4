"""Unit tests for DebouncedAutosave and draft writing."""

import asyncio
from pathlib import Path

import pytest

from dictaflow.services.autosave import DebouncedAutosave, write_draft


@pytest.mark.unit
class TestDebouncedAutosave:
    """Test cases for DebouncedAutosave."""

    @pytest.mark.asyncio
    async def test_saves_after_quiet_period(self):
        saved = []
        autosave = DebouncedAutosave(saved.append, delay_seconds=0.01)

        autosave("The patient")
        assert autosave.has_pending
        await asyncio.sleep(0.05)

        assert saved == ["The patient"]
        assert not autosave.has_pending

    @pytest.mark.asyncio
    async def test_only_last_value_is_saved(self):
        saved = []
        autosave = DebouncedAutosave(saved.append, delay_seconds=0.02)

        autosave("The")
        autosave("The patient")
        autosave("The patient shows")
        await asyncio.sleep(0.06)

        assert saved == ["The patient shows"]

    @pytest.mark.asyncio
    async def test_value_is_trimmed(self):
        saved = []
        autosave = DebouncedAutosave(saved.append, delay_seconds=0.01)

        autosave("  stable  \n")
        await asyncio.sleep(0.05)

        assert saved == ["stable"]

    @pytest.mark.asyncio
    async def test_blank_value_cancels_pending_save(self):
        saved = []
        autosave = DebouncedAutosave(saved.append, delay_seconds=0.02)

        autosave("draft")
        autosave("   ")
        await asyncio.sleep(0.06)

        assert saved == []
        assert not autosave.has_pending

    @pytest.mark.asyncio
    async def test_flush_saves_immediately(self):
        saved = []
        autosave = DebouncedAutosave(saved.append, delay_seconds=10.0)

        autosave("draft")
        autosave.flush()

        assert saved == ["draft"]
        assert not autosave.has_pending

    @pytest.mark.asyncio
    async def test_flush_without_pending_is_noop(self):
        saved = []
        autosave = DebouncedAutosave(saved.append)

        autosave.flush()

        assert saved == []

    @pytest.mark.asyncio
    async def test_write_failure_is_logged(self, caplog):
        def failing(text):
            raise OSError("disk full")

        autosave = DebouncedAutosave(failing, delay_seconds=0.01)
        autosave("draft")
        await asyncio.sleep(0.05)

        assert "Autosave failed" in caplog.text

    @pytest.mark.asyncio
    async def test_flush_write_failure_is_logged(self, caplog):
        def failing(text):
            raise OSError("disk full")

        autosave = DebouncedAutosave(failing)
        autosave("draft")
        autosave.flush()

        assert "Autosave failed" in caplog.text
        assert not autosave.has_pending


@pytest.mark.unit
def test_write_draft_creates_parent_directories(temp_data_dir):
    path = Path(temp_data_dir) / "nested" / "draft.txt"

    write_draft(str(path), "Patient stable")

    assert path.read_text(encoding="utf-8") == "Patient stable\n"
