"""Assemble history lines into commands.

Two line formats are understood:

* plain: the line is the command itself;
* extended (zsh ``EXTENDED_HISTORY`` / bash with timestamps):
  ``: <unix start>:<elapsed seconds>;<command>``.

A command whose last line ends with an unescaped backslash continues on the
next line. Continuation lines never carry an extended header.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone

from shell_bookmarker.storage.models import RawCommand, utc_now

logger = logging.getLogger(__name__)

EXTENDED_PREFIX = ": "

# Anything outside printable ASCII, except tab and newline.
_CONTROL_CHARS = re.compile(r"[^\t\n\x20-\x7e]")
_NUMBER = re.compile(r"\d+")


def clean_command(text: str) -> str:
    """Drop control and non-ASCII characters, surrounding blank lines and whitespace."""
    text = _CONTROL_CHARS.sub("", text)
    text = text.strip("\n")
    return text.strip()


def parse_timestamp_fields(fields: str) -> tuple[datetime, int]:
    """Parse ``<unix start>:<elapsed>``. Raises ValueError when malformed."""
    parts = fields.split(":")
    if len(parts) != 2:
        raise ValueError(f"expected 2 timestamp fields, got {len(parts)}")
    start, elapsed = parts
    if not _NUMBER.fullmatch(start):
        raise ValueError(f"invalid timestamp: {start!r}")
    if not _NUMBER.fullmatch(elapsed):
        raise ValueError(f"invalid elapsed: {elapsed!r}")
    try:
        timestamp = datetime.fromtimestamp(int(start), tz=timezone.utc)
    except (OverflowError, OSError) as e:
        raise ValueError(f"timestamp out of range: {start}") from e
    return timestamp, int(elapsed)


def parse_first_line(line: str) -> tuple[datetime, int, str]:
    """Split the first line of an entry into (timestamp, elapsed, command part).

    Lines that look extended but do not parse are kept whole as plain
    commands stamped with the current time.
    """
    if not line.startswith(EXTENDED_PREFIX):
        return utc_now(), 0, line

    separator = line.find(";")
    if separator <= len(EXTENDED_PREFIX):
        logger.debug("No extended header separator, reading as plain line: %r", line)
        return utc_now(), 0, line

    try:
        timestamp, elapsed = parse_timestamp_fields(line[len(EXTENDED_PREFIX):separator])
    except ValueError as e:
        logger.debug("Malformed extended header (%s), reading as plain line: %r", e, line)
        return utc_now(), 0, line

    return timestamp, elapsed, line[separator + 1:]


def _is_continued(part: str) -> bool:
    trailing = len(part) - len(part.rstrip("\\"))
    return trailing % 2 == 1


@dataclass
class _Builder:
    timestamp: datetime
    elapsed: int
    parts: list[str] = field(default_factory=list)


class HistoryParser:
    """Stateful assembler; feed it lines in file order."""

    def __init__(self) -> None:
        self._current: _Builder | None = None

    @property
    def in_progress(self) -> bool:
        return self._current is not None

    def feed(self, line: str) -> RawCommand | None:
        """Consume one line. Returns a command once its last line is seen."""
        if self._current is None:
            if line == "":
                return None
            timestamp, elapsed, part = parse_first_line(line)
            self._current = _Builder(timestamp=timestamp, elapsed=elapsed)
        else:
            part = line

        if _is_continued(part):
            self._current.parts.append(part[:-1].rstrip(" \t") + "\n")
            return None

        self._current.parts.append(part)
        return self._complete()

    def finish(self) -> RawCommand | None:
        """Flush a command left open by a trailing continuation at end of input."""
        if self._current is None:
            return None
        return self._complete()

    def _complete(self) -> RawCommand:
        builder, self._current = self._current, None
        assert builder is not None
        return RawCommand(
            timestamp=builder.timestamp,
            text=clean_command("".join(builder.parts)),
            elapsed=builder.elapsed,
            complete=True,
        )


def parse_lines(lines: Iterable[str]) -> Iterator[RawCommand]:
    """Yield every complete command found in ``lines``."""
    parser = HistoryParser()
    for line in lines:
        command = parser.feed(line)
        if command is not None:
            yield command
    command = parser.finish()
    if command is not None:
        yield command
