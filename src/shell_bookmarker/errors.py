"""Exception hierarchy for shell-bookmarker."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shell_bookmarker.storage.models import CommandStatus, IngestStats


class BookmarkerError(Exception):
    """Base error for all shell-bookmarker failures."""


class SourceUnavailable(BookmarkerError):
    """The history file could not be opened."""

    def __init__(self, path: str, reason: str = "") -> None:
        self.path = path
        message = f"History file unavailable: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class PersistenceFailure(BookmarkerError):
    """A read or write against the command store failed."""


class LintUnavailable(BookmarkerError):
    """shellcheck is not installed on this host."""


class EmptySelection(BookmarkerError):
    """An operation that needs at least one command received none."""

    def __init__(self, message: str = "No commands selected") -> None:
        super().__init__(message)


class InvalidTransition(BookmarkerError):
    """A status change not allowed by the command lifecycle."""

    def __init__(self, current: CommandStatus, target: CommandStatus) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot change status from {current.value} to {target.value}")


class IngestError(BookmarkerError):
    """An ingestion pass stopped on its first hard failure."""

    def __init__(self, cause: Exception, stats: IngestStats) -> None:
        self.cause = cause
        self.stats = stats
        super().__init__(f"History ingestion aborted: {cause}")
