"""SQLite database management for bookmarked commands."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from shell_bookmarker.errors import PersistenceFailure
from shell_bookmarker.storage.models import EPOCH, Command, CommandStatus, LintStatus

logger = logging.getLogger(__name__)

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_db: aiosqlite.Connection | None = None

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in CommandStatus)
_LINT_VALUES = ", ".join(f"'{s.value}'" for s in LintStatus)

_COLUMNS = (
    "id, title, description, script, elapsed, creation_datetime, "
    "modification_datetime, status, lint_status"
)


def format_timestamp(value: datetime) -> str:
    """Format a timestamp as stored: naive UTC, second precision."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(DATETIME_FORMAT)


def parse_timestamp(value: str) -> datetime:
    return datetime.strptime(value, DATETIME_FORMAT).replace(tzinfo=timezone.utc)


def _row_to_command(row: aiosqlite.Row) -> Command:
    return Command(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        script=row["script"],
        elapsed=row["elapsed"],
        created_at=parse_timestamp(row["creation_datetime"]),
        modified_at=parse_timestamp(row["modification_datetime"]),
        status=CommandStatus(row["status"]),
        lint_status=LintStatus(row["lint_status"]),
    )


async def init_db(db_path: str) -> None:
    """Initialize database and create tables."""
    global _db
    resolved = Path(db_path).expanduser().resolve()
    resolved.parent.mkdir(parents=True, exist_ok=True)

    _db = await aiosqlite.connect(str(resolved))
    _db.row_factory = aiosqlite.Row
    await _db.execute("PRAGMA journal_mode = WAL")

    await _db.execute(f"""
        CREATE TABLE IF NOT EXISTS command (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL DEFAULT '',
            description TEXT NOT NULL DEFAULT '',
            script TEXT NOT NULL,
            elapsed INTEGER NOT NULL DEFAULT 0 CHECK(elapsed >= 0),
            creation_datetime TEXT NOT NULL,
            modification_datetime TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'IMPORTED'
                CHECK(status IN ({_STATUS_VALUES})),
            lint_status TEXT NOT NULL DEFAULT 'NOT_AVAILABLE'
                CHECK(lint_status IN ({_LINT_VALUES}))
        )
    """)
    await _db.execute(
        "CREATE INDEX IF NOT EXISTS idx_command_creation_datetime ON command(creation_datetime)"
    )
    await _db.execute("CREATE INDEX IF NOT EXISTS idx_command_script ON command(script)")
    await _db.commit()
    logger.info("Database initialized: %s", resolved)


async def _rollback(db: aiosqlite.Connection) -> None:
    """Discard a failed write so a later commit cannot persist it."""
    try:
        await db.rollback()
    except aiosqlite.Error:
        logger.exception("Rollback failed")


async def get_db() -> aiosqlite.Connection:
    """Get the database connection."""
    if _db is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _db


async def close_db() -> None:
    """Close the database connection."""
    global _db
    if _db is not None:
        await _db.close()
        _db = None
        logger.info("Database closed")


async def get_max_command_timestamp() -> datetime:
    """Latest creation time across all commands, or the epoch when empty."""
    db = await get_db()
    try:
        cursor = await db.execute("SELECT MAX(creation_datetime) AS max_ts FROM command")
        row = await cursor.fetchone()
    except aiosqlite.Error as e:
        logger.exception("Failed to read max command timestamp")
        raise PersistenceFailure(f"Failed to read max command timestamp: {e}") from e
    if row is None or row["max_ts"] is None:
        return EPOCH
    return parse_timestamp(row["max_ts"])


async def command_exists(script: str) -> bool:
    """Check whether a command with this exact script is already stored."""
    db = await get_db()
    try:
        cursor = await db.execute("SELECT 1 FROM command WHERE script = ? LIMIT 1", (script,))
        row = await cursor.fetchone()
    except aiosqlite.Error as e:
        logger.exception("Failed to look up command")
        raise PersistenceFailure(f"Failed to look up command: {e}") from e
    return row is not None


async def insert_command(
    script: str,
    elapsed: int,
    created_at: datetime,
    modified_at: datetime | None = None,
    status: CommandStatus = CommandStatus.IMPORTED,
    lint_status: LintStatus = LintStatus.NOT_AVAILABLE,
    title: str = "",
    description: str = "",
) -> Command:
    """Insert a new command and return it with its assigned id."""
    modified_at = modified_at or created_at
    db = await get_db()
    try:
        cursor = await db.execute(
            """INSERT INTO command (title, description, script, elapsed, creation_datetime,
                                    modification_datetime, status, lint_status)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                title,
                description,
                script,
                elapsed,
                format_timestamp(created_at),
                format_timestamp(modified_at),
                status.value,
                lint_status.value,
            ),
        )
        await db.commit()
    except aiosqlite.Error as e:
        logger.exception("Failed to save command")
        await _rollback(db)
        raise PersistenceFailure(f"Failed to save command: {e}") from e

    return Command(
        id=cursor.lastrowid or 0,
        title=title,
        description=description,
        script=script,
        elapsed=elapsed,
        created_at=created_at,
        modified_at=modified_at,
        status=status,
        lint_status=lint_status,
    )


async def update_command(command: Command) -> None:
    """Write every mutable field of an existing command."""
    db = await get_db()
    try:
        cursor = await db.execute(
            """UPDATE command
               SET title = ?, description = ?, script = ?, elapsed = ?,
                   modification_datetime = ?, status = ?, lint_status = ?
               WHERE id = ?""",
            (
                command.title,
                command.description,
                command.script,
                command.elapsed,
                format_timestamp(command.modified_at),
                command.status.value,
                command.lint_status.value,
                command.id,
            ),
        )
        await db.commit()
    except aiosqlite.Error as e:
        logger.exception("Failed to update command %d", command.id)
        await _rollback(db)
        raise PersistenceFailure(f"Failed to update command {command.id}: {e}") from e
    if cursor.rowcount == 0:
        raise PersistenceFailure(f"Command {command.id} not found")


async def get_command(command_id: int) -> Command | None:
    """Get a single command by id."""
    db = await get_db()
    try:
        cursor = await db.execute(f"SELECT {_COLUMNS} FROM command WHERE id = ?", (command_id,))
        row = await cursor.fetchone()
    except aiosqlite.Error as e:
        logger.exception("Failed to read command %d", command_id)
        raise PersistenceFailure(f"Failed to read command {command_id}: {e}") from e
    return _row_to_command(row) if row is not None else None


async def get_commands(command_ids: list[int]) -> list[Command]:
    """Get commands by id, in the order the ids were given. Unknown ids are skipped."""
    commands: list[Command] = []
    for command_id in command_ids:
        command = await get_command(command_id)
        if command is not None:
            commands.append(command)
    return commands


async def list_commands(
    statuses: list[CommandStatus] | None = None,
    limit: int = 0,
) -> list[Command]:
    """List commands, most recent first. Deleted commands are hidden unless asked for."""
    if statuses is None:
        statuses = [s for s in CommandStatus if s is not CommandStatus.DELETED]
    placeholders = ", ".join("?" for _ in statuses)
    query = (
        f"SELECT {_COLUMNS} FROM command WHERE status IN ({placeholders}) "
        "ORDER BY creation_datetime DESC, id DESC"
    )
    params: list[object] = [s.value for s in statuses]
    if limit > 0:
        query += " LIMIT ?"
        params.append(limit)

    db = await get_db()
    try:
        cursor = await db.execute(query, params)
        rows = await cursor.fetchall()
    except aiosqlite.Error as e:
        logger.exception("Failed to list commands")
        raise PersistenceFailure(f"Failed to list commands: {e}") from e
    return [_row_to_command(row) for row in rows]


async def search_commands(term: str, limit: int = 50) -> list[Command]:
    """Substring search over title, description and script of non-deleted commands."""
    pattern = f"%{term}%"
    db = await get_db()
    try:
        cursor = await db.execute(
            f"""SELECT {_COLUMNS} FROM command
                WHERE status != ? AND (title LIKE ? OR description LIKE ? OR script LIKE ?)
                ORDER BY creation_datetime DESC, id DESC LIMIT ?""",
            (CommandStatus.DELETED.value, pattern, pattern, pattern, limit),
        )
        rows = await cursor.fetchall()
    except aiosqlite.Error as e:
        logger.exception("Failed to search commands")
        raise PersistenceFailure(f"Failed to search commands: {e}") from e
    return [_row_to_command(row) for row in rows]
