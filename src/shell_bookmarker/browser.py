"""Interactive command browser running alongside the history import."""

from __future__ import annotations

import asyncio
import logging
import shlex

from rich.console import Console
from rich.prompt import Confirm

from shell_bookmarker.config import AppConfig
from shell_bookmarker.errors import BookmarkerError
from shell_bookmarker.services.importer import HistoryService
from shell_bookmarker.services.lifecycle import CommandLifecycle, commands_string, render_summary
from shell_bookmarker.services.lint import LintService
from shell_bookmarker.storage.database import (
    close_db,
    get_commands,
    init_db,
    list_commands,
    search_commands,
)
from shell_bookmarker.storage.models import Command, CommandStatus
from shell_bookmarker.utils.formatting import commands_table, format_command_details, format_stats

logger = logging.getLogger(__name__)

PROMPT = "[bold cyan]bookmarks>[/bold cyan] "
CONFIRM_SUMMARY_LENGTH = 50

HELP_TEXT = """Commands:
  list [STATUS]      List commands (optionally only one status)
  search TERM        Search titles, descriptions and scripts
  show ID            Show a command
  get ID...          Print scripts, one per line
  bookmark ID        Bookmark a command
  archive ID         Archive a command
  obsolete ID        Mark a command obsolete
  delete ID          Delete a command
  compose ID...      Create a bookmarked command from several commands
  help               Show this message
  quit               Leave the browser"""


class BrowserSession:
    """Dispatch browser input lines to lifecycle operations."""

    def __init__(self, lifecycle: CommandLifecycle, console: Console) -> None:
        self.lifecycle = lifecycle
        self.console = console

    async def handle(self, line: str) -> bool:
        """Run one input line. Returns False when the user asked to quit."""
        try:
            args = shlex.split(line)
        except ValueError as e:
            self.console.print(f"[red]{e}[/red]")
            return True
        if not args:
            return True

        name, params = args[0].lower(), args[1:]
        if name in ("quit", "exit", "q"):
            return False

        handler = getattr(self, f"_cmd_{name}", None)
        if handler is None:
            self.console.print(f"[red]Unknown command: {name}[/red] (type 'help')")
            return True

        try:
            await handler(params)
        except BookmarkerError as e:
            self.console.print(f"[red]{e}[/red]")
        except ValueError as e:
            self.console.print(f"[red]Invalid argument: {e}[/red]")
        return True

    async def _load(self, params: list[str]) -> list[Command]:
        if not params:
            raise ValueError("expected at least one command id")
        ids = [int(p) for p in params]
        commands = await get_commands(ids)
        missing = sorted(set(ids) - {c.id for c in commands})
        if missing:
            raise ValueError(f"unknown command id(s): {', '.join(map(str, missing))}")
        return commands

    async def _cmd_help(self, params: list[str]) -> None:
        self.console.print(HELP_TEXT)

    async def _cmd_list(self, params: list[str]) -> None:
        statuses = [CommandStatus(p.upper()) for p in params] or None
        self.console.print(commands_table(await list_commands(statuses)))

    async def _cmd_search(self, params: list[str]) -> None:
        term = " ".join(params)
        self.console.print(commands_table(await search_commands(term), title=f"Search: {term}"))

    async def _cmd_show(self, params: list[str]) -> None:
        for command in await self._load(params):
            self.console.print(format_command_details(command), markup=False, highlight=False)

    async def _cmd_get(self, params: list[str]) -> None:
        self.console.print(commands_string(await self._load(params)), markup=False, highlight=False)

    async def _cmd_bookmark(self, params: list[str]) -> None:
        await self._set_status(params, CommandStatus.BOOKMARKED)

    async def _cmd_archive(self, params: list[str]) -> None:
        await self._set_status(params, CommandStatus.ARCHIVED)

    async def _cmd_obsolete(self, params: list[str]) -> None:
        await self._set_status(params, CommandStatus.OBSOLETE)

    async def _set_status(self, params: list[str], status: CommandStatus) -> None:
        for command in await self._load(params):
            await self.lifecycle.set_status(command, status)
            self.console.print(f"[green]Command #{command.id} is now {status.value}[/green]")

    async def _cmd_delete(self, params: list[str]) -> None:
        for command in await self._load(params):
            question = (
                f"Delete command #{command.id}: "
                f"{render_summary(command, CONFIRM_SUMMARY_LENGTH)}?"
            )
            confirmed = await asyncio.to_thread(Confirm.ask, question, console=self.console)
            if not confirmed:
                continue
            await self.lifecycle.delete(command)
            self.console.print(f"[green]Command #{command.id} marked as deleted[/green]")

    async def _cmd_compose(self, params: list[str]) -> None:
        commands = await self._load(params)
        composed = await self.lifecycle.compose(commands)
        self.console.print(
            f"[green]New command #{composed.id} created from {len(commands)} selected commands[/green]"
        )


async def _run_ingestion(history: HistoryService, history_file: str | None, console: Console) -> None:
    try:
        stats = await history.ingest(history_file)
    except BookmarkerError as e:
        logger.error("Error ingesting history: %s", e)
        console.print(f"[red]History import failed: {e}[/red]")
        return
    console.print(f"[dim]History imported: {format_stats(stats)}[/dim]")


async def run_browser(
    config: AppConfig,
    history_file: str | None = None,
    console: Console | None = None,
) -> None:
    """Import the history in the background and browse commands interactively."""
    console = console or Console()
    await init_db(config.storage.db_path)

    linter = LintService.create(config)
    session = BrowserSession(CommandLifecycle(linter), console)
    ingestion = asyncio.create_task(
        _run_ingestion(HistoryService(config, linter), history_file, console)
    )

    console.print("Type [bold]help[/bold] for the list of commands.")
    try:
        while True:
            line = await asyncio.to_thread(console.input, PROMPT)
            if not await session.handle(line):
                break
    except (EOFError, KeyboardInterrupt):
        pass
    finally:
        if not ingestion.done():
            console.print("[dim]Waiting for the history import to finish...[/dim]")
        await ingestion
        await close_db()
