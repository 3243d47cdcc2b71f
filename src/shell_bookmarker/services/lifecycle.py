"""Status changes, edits and composition of stored commands."""

from __future__ import annotations

import dataclasses
import logging

from shell_bookmarker.errors import EmptySelection, InvalidTransition, PersistenceFailure
from shell_bookmarker.history.parser import clean_command
from shell_bookmarker.services.lint import LintService
from shell_bookmarker.storage.database import insert_command, update_command
from shell_bookmarker.storage.models import Command, CommandStatus, LintStatus, utc_now

logger = logging.getLogger(__name__)

# Obsolete and archived are reachable from every status and are not listed here.
TRANSITIONS: dict[CommandStatus, set[CommandStatus]] = {
    CommandStatus.IMPORTED: {CommandStatus.BOOKMARKED, CommandStatus.SAVED, CommandStatus.DELETED},
    CommandStatus.BOOKMARKED: {CommandStatus.SAVED, CommandStatus.DELETED},
    CommandStatus.SAVED: {CommandStatus.BOOKMARKED, CommandStatus.DELETED},
    CommandStatus.OBSOLETE: {CommandStatus.DELETED},
    CommandStatus.ARCHIVED: {CommandStatus.DELETED},
    CommandStatus.DELETED: set(),
}

ADMINISTRATIVE_STATUSES = {CommandStatus.OBSOLETE, CommandStatus.ARCHIVED}


def can_transition(current: CommandStatus, target: CommandStatus) -> bool:
    if current is target or target in ADMINISTRATIVE_STATUSES:
        return True
    return target in TRANSITIONS[current]


def check_transition(current: CommandStatus, target: CommandStatus) -> None:
    if not can_transition(current, target):
        raise InvalidTransition(current, target)


def commands_string(commands: list[Command]) -> str:
    """Scripts joined one per line, in the given order."""
    return "\n".join(command.script for command in commands)


def render_summary(command: Command, max_length: int) -> str:
    """One-line description of a command, at most ``max_length`` characters."""
    max_length = max(max_length, 0)
    text = " ".join((command.title or command.script).split())
    if len(text) <= max_length:
        return text
    if max_length <= 3:
        return text[:max_length]
    return text[: max_length - 3] + "..."


class CommandLifecycle:
    """Apply lifecycle operations to stored commands.

    Every operation writes through the store. When the write fails the
    command object is restored to its previous field values and the
    PersistenceFailure is re-raised.
    """

    def __init__(self, linter: LintService | None = None) -> None:
        self.linter = linter

    async def delete(self, command: Command) -> None:
        """Soft-delete: the record stays, its status becomes DELETED."""
        await self.set_status(command, CommandStatus.DELETED)
        logger.info("Command #%d marked as deleted", command.id)

    async def bookmark(self, command: Command) -> None:
        await self.set_status(command, CommandStatus.BOOKMARKED)

    async def set_status(self, command: Command, status: CommandStatus) -> None:
        check_transition(command.status, status)
        await self._apply(command, status=status)

    async def edit(
        self,
        command: Command,
        title: str | None = None,
        description: str | None = None,
        script: str | None = None,
    ) -> None:
        """Update user-editable fields; the command becomes SAVED."""
        check_transition(command.status, CommandStatus.SAVED)
        changes: dict[str, object] = {"status": CommandStatus.SAVED}
        if title is not None:
            changes["title"] = title.strip()
        if description is not None:
            changes["description"] = description.strip()
        if script is not None:
            cleaned = clean_command(script)
            if not cleaned:
                raise ValueError("Script cannot be empty")
            if cleaned != command.script:
                changes["script"] = cleaned
                changes["lint_status"] = await self.lint(cleaned)
        await self._apply(command, **changes)

    async def relint(self, command: Command) -> LintStatus:
        status = await self.lint(command.script)
        await self._apply(command, lint_status=status)
        return status

    async def compose(self, commands: list[Command]) -> Command:
        """Create a new bookmarked command from the scripts of ``commands``."""
        if not commands:
            raise EmptySelection("Select at least one command to compose")

        script = commands_string(commands)
        now = utc_now()
        composed = await insert_command(
            script=script,
            elapsed=sum(command.elapsed for command in commands),
            created_at=now,
            modified_at=now,
            status=CommandStatus.BOOKMARKED,
            lint_status=await self.lint(script),
        )
        logger.info(
            "New command #%d composed from %s",
            composed.id,
            ", ".join(f"#{command.id}" for command in commands),
        )
        return composed

    async def lint(self, script: str) -> LintStatus:
        if self.linter is None:
            return LintStatus.NOT_AVAILABLE
        return await self.linter.check(script)

    async def _apply(self, command: Command, **changes: object) -> None:
        original = dataclasses.replace(command)
        for name, value in changes.items():
            setattr(command, name, value)
        command.modified_at = utc_now()
        try:
            await update_command(command)
        except PersistenceFailure:
            logger.error("Reverting command #%d after failed update", command.id)
            for f in dataclasses.fields(command):
                setattr(command, f.name, getattr(original, f.name))
            raise
