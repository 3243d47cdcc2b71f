"""Decide what happens to each parsed history command."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol

from shell_bookmarker.storage.models import EPOCH, ImportStatus, IngestStats, RawCommand

logger = logging.getLogger(__name__)


class CommandDecider(Protocol):
    """Classify-or-store capability: duplicate checks, linting and the write."""

    async def decide(self, command: RawCommand) -> ImportStatus: ...


class ImportClassifier:
    """Apply the empty-text and watermark gates, delegate the rest.

    Commands stamped at or before ``watermark`` were covered by an earlier
    pass and never reach the decider. Epoch-stamped commands carry no
    usable time and are always eligible.
    """

    def __init__(self, decider: CommandDecider, watermark: datetime = EPOCH) -> None:
        self.decider = decider
        self.watermark = watermark
        self.stats = IngestStats()

    async def classify(self, command: RawCommand) -> ImportStatus:
        """Classify one command and record the outcome in ``stats``.

        Exceptions raised by the decider propagate; ``stats`` keeps the
        counts gathered before the failure.
        """
        status = await self._classify(command)
        self.stats.record(status)
        return status

    async def _classify(self, command: RawCommand) -> ImportStatus:
        if not command.complete:
            return ImportStatus.IN_PROGRESS
        if not command.text.strip():
            return ImportStatus.SKIPPED
        if command.timestamp != EPOCH and command.timestamp <= self.watermark:
            logger.debug(
                "Skipping command at %s, not after watermark %s",
                command.timestamp,
                self.watermark,
            )
            return ImportStatus.SKIPPED
        return await self.decider.decide(command)
