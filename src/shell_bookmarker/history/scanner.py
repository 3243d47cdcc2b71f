"""Line-by-line access to the shell history file."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

from shell_bookmarker.config import DEFAULT_HISTORY_FILE
from shell_bookmarker.errors import SourceUnavailable

logger = logging.getLogger(__name__)


def resolve_history_path(path: str | None = None) -> Path:
    """Return the history file to read, defaulting to ~/.bash_history."""
    return Path(path or DEFAULT_HISTORY_FILE).expanduser()


def iter_history_lines(path: Path) -> Iterator[str]:
    """Yield the lines of a history file, without line terminators.

    The file is opened eagerly so a missing or unreadable file raises
    SourceUnavailable on the first ``next()``.
    """
    try:
        f = open(path, encoding="utf-8", errors="replace", newline="\n")
    except OSError as e:
        raise SourceUnavailable(str(path), e.strerror or str(e)) from e

    logger.debug("Reading history file %s", path)
    with f:
        for line in f:
            yield line.rstrip("\r\n")
