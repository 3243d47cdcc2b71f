"""Tests for the import classifier."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from conftest import raw
from shell_bookmarker.errors import PersistenceFailure
from shell_bookmarker.history.classifier import ImportClassifier
from shell_bookmarker.storage.models import EPOCH, ImportStatus, RawCommand

WATERMARK = datetime.fromtimestamp(1700000000, tz=timezone.utc)


def _decider(status: ImportStatus = ImportStatus.NEW) -> AsyncMock:
    decider = AsyncMock()
    decider.decide = AsyncMock(return_value=status)
    return decider


class TestImportClassifier:
    @pytest.mark.asyncio
    async def test_new_command_delegated(self):
        decider = _decider()
        classifier = ImportClassifier(decider, WATERMARK)
        command = raw("make test", ts=1700000100)

        assert await classifier.classify(command) is ImportStatus.NEW
        decider.decide.assert_awaited_once_with(command)
        assert classifier.stats.parsed == 1
        assert classifier.stats.imported == 1

    @pytest.mark.asyncio
    async def test_incomplete_command_in_progress(self):
        decider = _decider()
        classifier = ImportClassifier(decider, WATERMARK)

        status = await classifier.classify(RawCommand(text="echo a", complete=False))
        assert status is ImportStatus.IN_PROGRESS
        decider.decide.assert_not_awaited()
        assert classifier.stats.parsed == 0

    @pytest.mark.asyncio
    async def test_empty_text_skipped(self):
        decider = _decider()
        classifier = ImportClassifier(decider, WATERMARK)

        assert await classifier.classify(raw("   ", ts=1700000100)) is ImportStatus.SKIPPED
        decider.decide.assert_not_awaited()
        assert classifier.stats.skipped == 1

    @pytest.mark.asyncio
    async def test_at_watermark_not_delegated(self):
        decider = _decider()
        classifier = ImportClassifier(decider, WATERMARK)

        assert await classifier.classify(raw("make", ts=1700000000)) is ImportStatus.SKIPPED
        assert await classifier.classify(raw("make", ts=1600000000)) is ImportStatus.SKIPPED
        decider.decide.assert_not_awaited()
        assert classifier.stats.parsed == 2
        assert classifier.stats.imported == 0

    @pytest.mark.asyncio
    async def test_epoch_timestamp_always_eligible(self):
        decider = _decider()
        classifier = ImportClassifier(decider, WATERMARK)

        command = RawCommand(timestamp=EPOCH, text="make", complete=True)
        assert await classifier.classify(command) is ImportStatus.NEW
        decider.decide.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_outcomes_counted(self):
        outcomes = [
            ImportStatus.NEW,
            ImportStatus.ALREADY_EXISTS,
            ImportStatus.FILTERED_OUT,
            ImportStatus.ERROR,
            ImportStatus.NEW,
        ]
        decider = AsyncMock()
        decider.decide = AsyncMock(side_effect=outcomes)
        classifier = ImportClassifier(decider)

        for i in range(len(outcomes)):
            await classifier.classify(raw(f"cmd {i}", ts=1700000000 + i))

        stats = classifier.stats
        assert stats.parsed == 5
        assert stats.imported == 2
        assert stats.already_exists == 1
        assert stats.filtered_out == 1
        assert stats.errors == 1
        assert stats.skipped == 0

    @pytest.mark.asyncio
    async def test_decider_error_propagates_and_keeps_counts(self):
        decider = AsyncMock()
        decider.decide = AsyncMock(side_effect=[ImportStatus.NEW, PersistenceFailure("disk full")])
        classifier = ImportClassifier(decider)

        await classifier.classify(raw("cmd 1", ts=1700000001))
        with pytest.raises(PersistenceFailure):
            await classifier.classify(raw("cmd 2", ts=1700000002))
        assert classifier.stats.parsed == 1
        assert classifier.stats.imported == 1
