"""Data models for shell-bookmarker."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utc_now() -> datetime:
    """Current UTC time truncated to whole seconds (the store's precision)."""
    return datetime.now(timezone.utc).replace(microsecond=0)


class CommandStatus(str, Enum):
    IMPORTED = "IMPORTED"
    BOOKMARKED = "BOOKMARKED"
    SAVED = "SAVED"
    OBSOLETE = "OBSOLETE"
    ARCHIVED = "ARCHIVED"
    DELETED = "DELETED"


class LintStatus(str, Enum):
    OK = "OK"
    WARNING = "WARNING"
    ERROR = "ERROR"
    SHELLCHECK_FAILED = "SHELLCHECK_FAILED"
    NOT_AVAILABLE = "NOT_AVAILABLE"


class ImportStatus(Enum):
    """Outcome of classifying one history entry."""

    NEW = "new"
    SKIPPED = "skipped"
    FILTERED_OUT = "filtered_out"
    ALREADY_EXISTS = "already_exists"
    ERROR = "error"
    IN_PROGRESS = "in_progress"


@dataclass
class RawCommand:
    """A command assembled from one or more history lines."""

    timestamp: datetime = field(default_factory=utc_now)
    text: str = ""
    elapsed: int = 0
    complete: bool = False


@dataclass
class Command:
    """A stored command."""

    id: int = 0
    title: str = ""
    description: str = ""
    script: str = ""
    elapsed: int = 0
    created_at: datetime = field(default_factory=utc_now)
    modified_at: datetime = field(default_factory=utc_now)
    status: CommandStatus = CommandStatus.IMPORTED
    lint_status: LintStatus = LintStatus.NOT_AVAILABLE


@dataclass
class IngestStats:
    """Counters for one ingestion pass."""

    parsed: int = 0
    imported: int = 0
    skipped: int = 0
    filtered_out: int = 0
    already_exists: int = 0
    errors: int = 0

    def record(self, status: ImportStatus) -> None:
        if status is ImportStatus.IN_PROGRESS:
            return
        self.parsed += 1
        if status is ImportStatus.NEW:
            self.imported += 1
        elif status is ImportStatus.SKIPPED:
            self.skipped += 1
        elif status is ImportStatus.FILTERED_OUT:
            self.filtered_out += 1
        elif status is ImportStatus.ALREADY_EXISTS:
            self.already_exists += 1
        elif status is ImportStatus.ERROR:
            self.errors += 1
