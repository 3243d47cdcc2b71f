"""Tests for history file access."""

from __future__ import annotations

from pathlib import Path

import pytest

from shell_bookmarker.errors import SourceUnavailable
from shell_bookmarker.history.parser import parse_lines
from shell_bookmarker.history.scanner import iter_history_lines, resolve_history_path


class TestResolveHistoryPath:
    def test_explicit_path(self, tmp_path):
        assert resolve_history_path(str(tmp_path / "hist")) == tmp_path / "hist"

    def test_default_is_bash_history(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        assert resolve_history_path() == tmp_path / ".bash_history"
        assert resolve_history_path("") == tmp_path / ".bash_history"


class TestIterHistoryLines:
    def test_lines_in_order(self, tmp_path):
        path = tmp_path / "hist"
        path.write_text("echo a\necho b\r\necho c")
        assert list(iter_history_lines(path)) == ["echo a", "echo b", "echo c"]

    def test_lone_carriage_return_kept_in_line(self, tmp_path):
        path = tmp_path / "hist"
        path.write_bytes(b"printf 'a\rb'\necho c\r\n")
        assert list(iter_history_lines(path)) == ["printf 'a\rb'", "echo c"]

    def test_carriage_return_does_not_split_command(self, tmp_path):
        path = tmp_path / "hist"
        path.write_bytes(b"printf 'a\rb'\n")
        commands = list(parse_lines(iter_history_lines(path)))
        assert [c.text for c in commands] == ["printf 'ab'"]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "hist"
        path.write_text("")
        assert list(iter_history_lines(path)) == []

    def test_invalid_utf8_replaced(self, tmp_path):
        path = tmp_path / "hist"
        path.write_bytes(b"echo \xff\n")
        (line,) = iter_history_lines(path)
        assert line.startswith("echo ")

    def test_missing_file(self, tmp_path):
        with pytest.raises(SourceUnavailable) as exc_info:
            list(iter_history_lines(tmp_path / "missing"))
        assert "missing" in str(exc_info.value)

    def test_directory_is_unavailable(self, tmp_path):
        with pytest.raises(SourceUnavailable):
            list(iter_history_lines(Path(tmp_path)))
