"""Tests for the history parser."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from shell_bookmarker.history.parser import (
    HistoryParser,
    clean_command,
    parse_first_line,
    parse_lines,
    parse_timestamp_fields,
)


def _now():
    return datetime.now(timezone.utc)


class TestCleanCommand:
    def test_strips_whitespace(self):
        assert clean_command("  echo hi \t") == "echo hi"

    def test_removes_control_characters(self):
        assert clean_command("echo \x1b[31mred\x07") == "echo [31mred"

    def test_removes_non_ascii(self):
        assert clean_command("echo café") == "echo caf"

    def test_trims_blank_lines(self):
        assert clean_command("\n\n  echo a\necho b\n\n") == "echo a\necho b"

    def test_keeps_inner_newlines(self):
        assert clean_command("echo a\n\necho b") == "echo a\n\necho b"


class TestParseTimestampFields:
    def test_valid(self):
        ts, elapsed = parse_timestamp_fields("1700000000:5")
        assert ts == datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=1700000000)
        assert elapsed == 5

    @pytest.mark.parametrize("fields", ["abc:5", "1700000000:x", "1700000000", "1:2:3", ":5", "-1:0"])
    def test_invalid(self, fields):
        with pytest.raises(ValueError):
            parse_timestamp_fields(fields)


class TestParseFirstLine:
    def test_plain_line(self):
        before = _now() - timedelta(seconds=1)
        ts, elapsed, part = parse_first_line("ls -la /tmp")
        assert part == "ls -la /tmp"
        assert elapsed == 0
        assert before <= ts <= _now()

    def test_extended_line(self):
        ts, elapsed, part = parse_first_line(": 1700000000:5;echo hi")
        assert ts == datetime.fromtimestamp(1700000000, tz=timezone.utc)
        assert elapsed == 5
        assert part == "echo hi"

    def test_extended_line_keeps_later_semicolons(self):
        _, _, part = parse_first_line(": 1700000000:0;cd /tmp; make")
        assert part == "cd /tmp; make"

    def test_malformed_extended_falls_back_to_whole_line(self):
        ts, elapsed, part = parse_first_line(": abc:5;echo hi")
        assert part == ": abc:5;echo hi"
        assert elapsed == 0
        assert abs((_now() - ts).total_seconds()) < 5

    def test_separator_too_early(self):
        _, _, part = parse_first_line(": ;echo")
        assert part == ": ;echo"

    def test_no_separator(self):
        _, _, part = parse_first_line(": 1700000000:5 echo hi")
        assert part == ": 1700000000:5 echo hi"


class TestHistoryParser:
    def test_plain_lines_one_command_each(self):
        commands = list(parse_lines(["echo one", "echo two", "echo three"]))
        assert [c.text for c in commands] == ["echo one", "echo two", "echo three"]
        assert all(c.elapsed == 0 for c in commands)
        assert all(c.complete for c in commands)
        assert all(abs((_now() - c.timestamp).total_seconds()) < 5 for c in commands)

    def test_extended_command(self):
        (command,) = parse_lines([": 1700000000:5;echo hi"])
        assert command.timestamp == datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=1700000000)
        assert command.elapsed == 5
        assert command.text == "echo hi"

    def test_multiline_continuation(self):
        (command,) = parse_lines(["echo a\\", "echo b"])
        assert command.text == "echo a\necho b"

    def test_continuation_strips_trailing_blanks(self):
        (command,) = parse_lines(["docker run \t\\", "  --rm image"])
        assert command.text == "docker run\n  --rm image"

    def test_extended_multiline(self):
        commands = list(parse_lines([": 1700000000:2;for f in *; do \\", "echo $f\\", "done", "pwd"]))
        assert len(commands) == 2
        assert commands[0].text == "for f in *; do\necho $f\ndone"
        assert commands[0].elapsed == 2
        assert commands[1].text == "pwd"

    def test_continuation_line_is_not_a_header(self):
        (command,) = parse_lines(["echo a\\", ": 1700000000:5;echo b"])
        assert command.text == "echo a\n: 1700000000:5;echo b"

    def test_escaped_backslash_is_not_continuation(self):
        commands = list(parse_lines(["echo a\\\\", "echo b"]))
        assert [c.text for c in commands] == ["echo a\\\\", "echo b"]

    def test_blank_lines_ignored_when_idle(self):
        commands = list(parse_lines(["", "echo a", "", "", "echo b"]))
        assert [c.text for c in commands] == ["echo a", "echo b"]

    def test_blank_line_after_continuation_ends_command(self):
        commands = list(parse_lines(["echo a\\", "", "echo b"]))
        assert [c.text for c in commands] == ["echo a", "echo b"]

    def test_blank_continued_line_kept_in_body(self):
        (command,) = parse_lines(["cat <<EOF\\", "\\", "EOF"])
        assert command.text == "cat <<EOF\n\nEOF"

    def test_trailing_continuation_flushed_at_end(self):
        commands = list(parse_lines(["echo a", "echo b\\", "echo c\\"]))
        assert [c.text for c in commands] == ["echo a", "echo b\necho c"]
        assert commands[-1].complete

    def test_feed_reports_progress(self):
        parser = HistoryParser()
        assert parser.feed("echo a\\") is None
        assert parser.in_progress
        command = parser.feed("echo b")
        assert command is not None and command.complete
        assert not parser.in_progress
        assert parser.finish() is None

    def test_whitespace_only_command_is_empty(self):
        (command,) = parse_lines(["   "])
        assert command.text == ""
        assert command.complete

    def test_control_bytes_removed(self):
        (command,) = parse_lines(["echo \x01hi\x7f"])
        assert command.text == "echo hi"
