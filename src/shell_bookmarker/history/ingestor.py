"""Run one ingestion pass over a history file."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from shell_bookmarker.errors import IngestError
from shell_bookmarker.history.classifier import CommandDecider, ImportClassifier
from shell_bookmarker.history.parser import parse_lines
from shell_bookmarker.history.scanner import iter_history_lines
from shell_bookmarker.storage.models import EPOCH, IngestStats

logger = logging.getLogger(__name__)


async def ingest_history(
    path: Path,
    decider: CommandDecider,
    watermark: datetime = EPOCH,
) -> IngestStats:
    """Scan, parse and classify ``path`` in file order.

    Raises SourceUnavailable when the file cannot be opened, and IngestError
    (carrying the partial counters) when classification fails. Commands
    written before a failure stay written.
    """
    classifier = ImportClassifier(decider, watermark)

    for command in parse_lines(iter_history_lines(path)):
        try:
            await classifier.classify(command)
        except Exception as e:
            logger.error(
                "History ingestion aborted for %s after %d commands: %s",
                path,
                classifier.stats.parsed,
                e,
            )
            raise IngestError(e, classifier.stats) from e

    stats = classifier.stats
    logger.info(
        "History ingestion stats: file=%s watermark=%s parsed=%d imported=%d skipped=%d "
        "filtered_out=%d already_exists=%d errors=%d",
        path,
        watermark,
        stats.parsed,
        stats.imported,
        stats.skipped,
        stats.filtered_out,
        stats.already_exists,
        stats.errors,
    )
    return stats
