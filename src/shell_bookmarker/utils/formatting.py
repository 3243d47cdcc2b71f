"""Formatting helpers for command listings and ingestion reports."""

from __future__ import annotations

from rich.table import Table
from rich.text import Text

from shell_bookmarker.services.lifecycle import render_summary
from shell_bookmarker.storage.models import Command, CommandStatus, IngestStats, LintStatus

STATUS_STYLES: dict[CommandStatus, str] = {
    CommandStatus.IMPORTED: "dim",
    CommandStatus.BOOKMARKED: "green",
    CommandStatus.SAVED: "green",
    CommandStatus.OBSOLETE: "bright_black",
    CommandStatus.ARCHIVED: "bright_black",
    CommandStatus.DELETED: "yellow",
}

LINT_LABELS: dict[LintStatus, tuple[str, str]] = {
    LintStatus.OK: ("OK", "green"),
    LintStatus.WARNING: ("Warning", "yellow"),
    LintStatus.ERROR: ("Error", "red"),
    LintStatus.SHELLCHECK_FAILED: ("Shellcheck Failed", "red"),
    LintStatus.NOT_AVAILABLE: ("Not Available", "bright_black"),
}

SCRIPT_PREVIEW_LENGTH = 60


def format_duration(seconds: int) -> str:
    """Format an elapsed time in seconds."""
    if seconds < 60:
        return f"{seconds}s"
    elif seconds < 3600:
        return f"{seconds // 60}m {seconds % 60}s"
    else:
        hours = seconds // 3600
        minutes = (seconds % 3600) // 60
        return f"{hours}h {minutes}m"


def format_status(status: CommandStatus) -> Text:
    return Text(status.value, style=STATUS_STYLES.get(status, ""))


def format_lint_status(status: LintStatus) -> Text:
    label, style = LINT_LABELS.get(status, LINT_LABELS[LintStatus.NOT_AVAILABLE])
    return Text(label, style=style)


def format_stats(stats: IngestStats) -> str:
    """One-line summary of an ingestion pass."""
    return (
        f"parsed {stats.parsed}, imported {stats.imported}, "
        f"already existing {stats.already_exists}, filtered out {stats.filtered_out}, "
        f"skipped {stats.skipped}, errors {stats.errors}"
    )


def commands_table(commands: list[Command], title: str = "Commands") -> Table:
    """Build a rich table listing commands."""
    table = Table(title=title)
    table.add_column("Id", justify="right", style="cyan")
    table.add_column("Title")
    table.add_column("Script")
    table.add_column("Status")
    table.add_column("Lint")

    for command in commands:
        script = command.script
        if len(script) > SCRIPT_PREVIEW_LENGTH or "\n" in script:
            script = render_summary(Command(script=script), SCRIPT_PREVIEW_LENGTH)
        table.add_row(
            str(command.id),
            command.title,
            script,
            format_status(command.status),
            format_lint_status(command.lint_status),
        )
    return table


def format_command_details(command: Command) -> str:
    """Multi-line description of a single command."""
    lines = [
        f"Command #{command.id}",
        f"Title: {command.title or '(none)'}",
        f"Description: {command.description or '(none)'}",
        f"Status: {command.status.value}",
        f"Lint: {LINT_LABELS[command.lint_status][0]}",
        f"Elapsed: {format_duration(command.elapsed)}",
        f"Created: {command.created_at:%Y-%m-%d %H:%M:%S} UTC",
        f"Modified: {command.modified_at:%Y-%m-%d %H:%M:%S} UTC",
        "",
        command.script,
    ]
    return "\n".join(lines)
