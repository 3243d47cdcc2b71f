"""History import: duplicate policy, optional linting and the write."""

from __future__ import annotations

import logging

from shell_bookmarker.config import AppConfig
from shell_bookmarker.history.ingestor import ingest_history
from shell_bookmarker.history.scanner import resolve_history_path
from shell_bookmarker.services.ignore import IgnoreFilter
from shell_bookmarker.services.lint import LintService
from shell_bookmarker.storage.database import (
    command_exists,
    get_max_command_timestamp,
    insert_command,
)
from shell_bookmarker.storage.models import ImportStatus, IngestStats, LintStatus, RawCommand

logger = logging.getLogger(__name__)


class ImportDecider:
    """Decide and store one history command.

    A command is a duplicate when any stored command, deleted ones included,
    has the same sanitized script. Commands shellcheck flags as errors are
    counted but not stored.
    """

    def __init__(
        self,
        ignore_filter: IgnoreFilter,
        linter: LintService | None = None,
        lint_on_import: bool = True,
    ) -> None:
        self.ignore_filter = ignore_filter
        self.linter = linter
        self.lint_on_import = lint_on_import

    async def decide(self, command: RawCommand) -> ImportStatus:
        script = command.text
        if self.ignore_filter.matches(script):
            return ImportStatus.FILTERED_OUT

        if await command_exists(script):
            return ImportStatus.ALREADY_EXISTS

        lint_status = LintStatus.NOT_AVAILABLE
        if self.linter is not None and self.lint_on_import:
            lint_status = await self.linter.check(script)
            if lint_status is LintStatus.ERROR:
                logger.info("Not importing command with lint errors: %s", script)
                return ImportStatus.ERROR

        await insert_command(
            script=script,
            elapsed=command.elapsed,
            created_at=command.timestamp,
            lint_status=lint_status,
        )
        return ImportStatus.NEW


class HistoryService:
    """Import the shell history into the command store."""

    def __init__(self, config: AppConfig, linter: LintService | None = None) -> None:
        self.config = config
        self.decider = ImportDecider(
            IgnoreFilter(
                config.history.ignore_patterns,
                use_defaults=config.history.use_default_ignores,
            ),
            linter=linter,
            lint_on_import=config.lint.on_import,
        )

    async def ingest(self, history_file: str | None = None) -> IngestStats:
        """Run one ingestion pass, importing only commands newer than the store."""
        path = resolve_history_path(history_file or self.config.history.file)
        watermark = await get_max_command_timestamp()
        logger.debug("Ingesting %s from watermark %s", path, watermark)
        return await ingest_history(path, self.decider, watermark)
