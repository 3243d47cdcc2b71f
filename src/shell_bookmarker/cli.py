"""CLI entry point using typer."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import sys
from collections import deque
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import typer
from rich.console import Console
from rich.table import Table

from shell_bookmarker import __version__
from shell_bookmarker.config import (
    CONFIG_FILE,
    AppConfig,
    HistoryConfig,
    LintConfig,
    LoggingConfig,
    StorageConfig,
    load_config,
    save_config,
)
from shell_bookmarker.errors import BookmarkerError, IngestError
from shell_bookmarker.history.scanner import resolve_history_path
from shell_bookmarker.services.importer import HistoryService
from shell_bookmarker.services.lifecycle import CommandLifecycle, commands_string, render_summary
from shell_bookmarker.services.lint import LintService
from shell_bookmarker.storage.database import (
    close_db,
    get_command,
    get_commands,
    init_db,
    list_commands,
    search_commands,
)
from shell_bookmarker.storage.models import Command, CommandStatus, IngestStats
from shell_bookmarker.utils.formatting import (
    commands_table,
    format_command_details,
    format_lint_status,
    format_stats,
)
from shell_bookmarker.utils.system import check_shellcheck

app = typer.Typer(
    name="shell-bookmarker",
    help="Bookmark, edit and reuse commands from your shell history.",
    add_completion=False,
)
console = Console()

T = TypeVar("T")

CONFIRM_SUMMARY_LENGTH = 50


def setup_logging(config: AppConfig, interactive: bool = False) -> None:
    """Log to the configured file, and to stderr unless a prompt owns the terminal."""
    log_path = Path(config.logging.file).expanduser().resolve()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.ERROR),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(str(log_path)),
            *([] if interactive else [logging.StreamHandler()]),
        ],
    )


def _run(config: AppConfig, func: Callable[[], Awaitable[T]]) -> T:
    """Run ``func`` with the database open, turning domain errors into exit code 1."""

    async def runner() -> T:
        await init_db(config.storage.db_path)
        try:
            return await func()
        finally:
            await close_db()

    try:
        return asyncio.run(runner())
    except BookmarkerError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


def _prepare() -> AppConfig:
    config = load_config()
    setup_logging(config)
    return config


async def _load(command_ids: list[int]) -> list[Command]:
    commands = await get_commands(command_ids)
    missing = sorted(set(command_ids) - {c.id for c in commands})
    if missing:
        console.print(f"[red]Unknown command id(s): {', '.join(map(str, missing))}[/red]")
        raise typer.Exit(1)
    return commands


@app.command()
def init() -> None:
    """Interactive setup wizard."""
    console.print(f"\n[bold]Shell Bookmarker v{__version__}[/bold]")
    console.print("Interactive Setup\n")

    # 1. Check shellcheck
    console.print("[dim]Checking shellcheck...[/dim]")
    installed, version_info = check_shellcheck()
    if installed:
        console.print(f"  shellcheck: [green]{version_info}[/green]")
    else:
        console.print(f"  [yellow]Warning: {version_info}[/yellow]")

    # 2. History file
    console.print("\n[bold]Step 1:[/bold] Shell history file")
    history_file = typer.prompt("  History file", default=HistoryConfig().file)
    if not resolve_history_path(history_file).is_file():
        console.print(f"  [yellow]Warning: {history_file} does not exist yet.[/yellow]")

    # 3. Database location
    console.print("\n[bold]Step 2:[/bold] Command database")
    db_path = typer.prompt("  Database path", default=StorageConfig().db_path)

    # 4. Linting
    console.print("\n[bold]Step 3:[/bold] Linting")
    lint_enabled = typer.confirm("  Lint commands with shellcheck?", default=installed)
    lint_on_import = lint_enabled and typer.confirm("  Lint while importing history?", default=True)

    config = AppConfig(
        history=HistoryConfig(file=history_file),
        lint=LintConfig(enabled=lint_enabled, on_import=lint_on_import),
        storage=StorageConfig(db_path=db_path),
        logging=LoggingConfig(),
    )
    save_config(config)

    console.print(f"\n[green]Configuration saved to {CONFIG_FILE}[/green]")
    console.print("\nNext steps:")
    console.print("  [bold]shell-bookmarker ingest[/bold]  Import your history")
    console.print("  [bold]shell-bookmarker browse[/bold]  Browse your commands\n")


@app.command()
def ingest(
    history_file: str = typer.Option(None, "--history-file", "-f", help="History file to import"),
) -> None:
    """Import new commands from the shell history."""
    config = _prepare()

    async def run() -> IngestStats:
        history = HistoryService(config, LintService.create(config))
        try:
            return await history.ingest(history_file)
        except IngestError as e:
            console.print(f"[yellow]Partial import: {format_stats(e.stats)}[/yellow]")
            raise

    stats = _run(config, run)
    console.print(f"[green]History imported:[/green] {format_stats(stats)}")


@app.command("list")
def list_cmd(
    status: list[CommandStatus] = typer.Option(None, "--status", "-s", help="Only these statuses"),
    limit: int = typer.Option(0, "--limit", "-n", help="Maximum number of commands"),
) -> None:
    """List stored commands, most recent first."""
    config = _prepare()
    commands = _run(config, lambda: list_commands(status or None, limit))
    console.print(commands_table(commands))


@app.command()
def search(
    term: str = typer.Argument(..., help="Text to look for"),
    limit: int = typer.Option(50, "--limit", "-n", help="Maximum number of results"),
) -> None:
    """Search titles, descriptions and scripts."""
    config = _prepare()
    commands = _run(config, lambda: search_commands(term, limit))
    console.print(commands_table(commands, title=f"Search: {term}"))


@app.command()
def show(command_id: int = typer.Argument(..., help="Command id")) -> None:
    """Show a command."""
    config = _prepare()
    command = _run(config, lambda: get_command(command_id))
    if command is None:
        console.print(f"[red]Command #{command_id} not found.[/red]")
        raise typer.Exit(1)
    console.print(format_command_details(command), markup=False, highlight=False)


@app.command()
def get(command_ids: list[int] = typer.Argument(..., help="Command ids")) -> None:
    """Print scripts, one per line, ready to paste into a shell."""
    config = _prepare()

    async def run() -> str:
        return commands_string(await _load(command_ids))

    typer.echo(_run(config, run))


def _change_status(command_ids: list[int], status: CommandStatus) -> None:
    config = _prepare()

    async def run() -> None:
        lifecycle = CommandLifecycle()
        for command in await _load(command_ids):
            await lifecycle.set_status(command, status)
            console.print(f"[green]Command #{command.id} is now {status.value}[/green]")

    _run(config, run)


@app.command()
def bookmark(command_ids: list[int] = typer.Argument(..., help="Command ids")) -> None:
    """Bookmark commands."""
    _change_status(command_ids, CommandStatus.BOOKMARKED)


@app.command()
def archive(command_ids: list[int] = typer.Argument(..., help="Command ids")) -> None:
    """Archive commands."""
    _change_status(command_ids, CommandStatus.ARCHIVED)


@app.command()
def obsolete(command_ids: list[int] = typer.Argument(..., help="Command ids")) -> None:
    """Mark commands obsolete."""
    _change_status(command_ids, CommandStatus.OBSOLETE)


@app.command()
def delete(
    command_ids: list[int] = typer.Argument(..., help="Command ids"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete commands (they stay in the database with status DELETED)."""
    config = _prepare()

    async def run() -> None:
        lifecycle = CommandLifecycle()
        for command in await _load(command_ids):
            summary = render_summary(command, CONFIRM_SUMMARY_LENGTH)
            if not yes and not typer.confirm(f"Delete command #{command.id}: {summary}?"):
                continue
            await lifecycle.delete(command)
            console.print(f"[green]Command #{command.id} marked as deleted[/green]")

    _run(config, run)


@app.command()
def compose(command_ids: list[int] = typer.Argument(None, help="Command ids, in order")) -> None:
    """Create a new bookmarked command from several commands."""
    config = _prepare()

    async def run() -> Command:
        commands = await _load(command_ids or [])
        return await CommandLifecycle(LintService.create(config)).compose(commands)

    composed = _run(config, run)
    console.print(
        f"[green]New command #{composed.id} created from {len(command_ids)} selected commands[/green]"
    )


@app.command()
def edit(
    command_id: int = typer.Argument(..., help="Command id"),
    title: str = typer.Option(None, "--title", "-t", help="New title"),
    description: str = typer.Option(None, "--description", "-d", help="New description"),
    script: str = typer.Option(None, "--script", "-s", help="New script"),
) -> None:
    """Edit a command. Without options the script opens in your editor."""
    config = _prepare()

    async def run() -> Command | None:
        command = (await _load([command_id]))[0]
        new_script = script
        if title is None and description is None and script is None:
            new_script = typer.edit(command.script)
            if new_script is None:
                return None
        lifecycle = CommandLifecycle(LintService.create(config))
        await lifecycle.edit(command, title=title, description=description, script=new_script)
        return command

    try:
        command = _run(config, run)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    if command is None:
        console.print("[dim]No changes.[/dim]")
        return
    console.print(f"[green]Command #{command.id} saved.[/green]")


@app.command()
def lint(command_ids: list[int] = typer.Argument(..., help="Command ids")) -> None:
    """Run shellcheck again on commands."""
    config = _prepare()

    async def run() -> None:
        lifecycle = CommandLifecycle(LintService.from_config(config))
        for command in await _load(command_ids):
            status = await lifecycle.relint(command)
            console.print(f"Command #{command.id}: ", format_lint_status(status))

    _run(config, run)


@app.command()
def browse(
    history_file: str = typer.Option(None, "--history-file", "-f", help="History file to import"),
) -> None:
    """Import the history in the background and browse commands interactively."""
    config = load_config()
    setup_logging(config, interactive=True)

    from shell_bookmarker.browser import run_browser

    try:
        asyncio.run(run_browser(config, history_file, console))
    except BookmarkerError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


def _config_sections(cfg: AppConfig) -> dict[str, object]:
    return {f.name: getattr(cfg, f.name) for f in dataclasses.fields(cfg)}


def _display_value(value: object) -> str:
    if isinstance(value, list):
        return ", ".join(value) or "(none)"
    return str(value)


def _coerce_value(current: object, raw: str) -> object:
    """Convert ``raw`` to the type of the setting it replaces. Raises ValueError."""
    if isinstance(current, bool):
        return raw.lower() in ("true", "1", "yes")
    if isinstance(current, int):
        return int(raw)
    if isinstance(current, list):
        return [item.strip() for item in raw.split(",") if item.strip()]
    return raw


@app.command()
def config(
    key: str = typer.Argument(None, help="Config key (e.g., lint.timeout)"),
    value: str = typer.Argument(None, help="New value"),
) -> None:
    """View or modify configuration."""
    cfg = load_config()
    sections = _config_sections(cfg)

    if key is None:
        table = Table(title="Configuration")
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="green")
        for section_name, section in sections.items():
            for f in dataclasses.fields(section):
                table.add_row(f"{section_name}.{f.name}", _display_value(getattr(section, f.name)))
        console.print(table)
        return

    if value is None:
        console.print("[red]Usage: shell-bookmarker config <key> <value>[/red]")
        raise typer.Exit(1)

    section_name, dot, attr = key.partition(".")
    if not dot or not attr or "." in attr:
        console.print("[red]Key format: section.key (e.g., lint.timeout)[/red]")
        raise typer.Exit(1)

    section = sections.get(section_name)
    if section is None:
        console.print(f"[red]Unknown section: {section_name}[/red]")
        raise typer.Exit(1)
    if attr not in {f.name for f in dataclasses.fields(section)}:
        console.print(f"[red]Unknown key: {key}[/red]")
        raise typer.Exit(1)

    try:
        typed_value = _coerce_value(getattr(section, attr), value)
    except ValueError:
        console.print(f"[red]Invalid value type for {key}[/red]")
        raise typer.Exit(1)

    setattr(section, attr, typed_value)
    save_config(cfg)
    console.print(f"[green]{key} = {_display_value(typed_value)}[/green]")


@app.command()
def logs(
    lines: int = typer.Option(50, "--lines", "-n", help="Number of lines"),
    follow: bool = typer.Option(False, "--follow", "-f", help="Follow log output"),
) -> None:
    """View the configured log file."""
    log_path = Path(load_config().logging.file).expanduser()
    if not log_path.is_file():
        console.print("[dim]No log file found.[/dim]")
        return

    if follow:
        import subprocess

        try:
            subprocess.run(["tail", "-f", "-n", str(lines), str(log_path)])
        except KeyboardInterrupt:
            pass
        return

    with open(log_path, encoding="utf-8", errors="replace") as f:
        last_lines = deque(f, maxlen=max(lines, 0))
    for line in last_lines:
        console.print(line.rstrip("\n"), markup=False, highlight=False)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"shell-bookmarker v{__version__}")

    installed, version_info = check_shellcheck()
    if installed:
        console.print(f"shellcheck: {version_info}")
    else:
        console.print("shellcheck: [yellow]not installed[/yellow]")

    console.print(f"Python: {sys.version.split()[0]}")
    console.print(f"Config: {CONFIG_FILE}")


if __name__ == "__main__":
    app()
