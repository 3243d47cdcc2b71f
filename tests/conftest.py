"""Shared test fixtures."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
import pytest_asyncio

from shell_bookmarker.config import AppConfig, HistoryConfig, LintConfig, LoggingConfig, StorageConfig
from shell_bookmarker.storage.database import close_db, init_db
from shell_bookmarker.storage.models import RawCommand


@pytest.fixture
def app_config(tmp_path):
    """Create a test configuration."""
    return AppConfig(
        history=HistoryConfig(file=str(tmp_path / "history"), ignore_patterns=[], use_default_ignores=True),
        lint=LintConfig(enabled=False, on_import=False),
        storage=StorageConfig(db_path=str(tmp_path / "test.db")),
        logging=LoggingConfig(level="DEBUG", file=str(tmp_path / "test.log")),
    )


@pytest_asyncio.fixture
async def db(tmp_path):
    """An initialized database, closed after the test."""
    await init_db(str(tmp_path / "commands.db"))
    yield
    await close_db()


@pytest.fixture
def write_history(tmp_path):
    """Write lines to a history file and return its path."""

    def _write(lines: list[str], name: str = "history") -> str:
        path = tmp_path / name
        path.write_text("".join(line + "\n" for line in lines))
        return str(path)

    return _write


def raw(text: str, ts: int | None = None, elapsed: int = 0) -> RawCommand:
    """Build a complete RawCommand, stamped ``ts`` seconds after the epoch."""
    if ts is None:
        return RawCommand(text=text, elapsed=elapsed, complete=True)
    return RawCommand(
        timestamp=datetime.fromtimestamp(ts, tz=timezone.utc),
        text=text,
        elapsed=elapsed,
        complete=True,
    )
