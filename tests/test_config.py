"""Tests for configuration module."""

from __future__ import annotations

import pytest

from shell_bookmarker.config import (
    AppConfig,
    HistoryConfig,
    LintConfig,
    StorageConfig,
    load_config,
    save_config,
)


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    import shell_bookmarker.config as cfg_module

    config_file = tmp_path / "config.toml"
    monkeypatch.setattr(cfg_module, "CONFIG_FILE", config_file)
    monkeypatch.setattr(cfg_module, "CONFIG_DIR", tmp_path)
    for var in ("SHELL_CMD_BOOK_DB", "SHELL_CMD_BOOK_HISTFILE", "SHELL_CMD_BOOK_LOG_LEVEL", "DEBUG"):
        monkeypatch.delenv(var, raising=False)
    return config_file


class TestAppConfig:
    def test_defaults(self):
        config = AppConfig()
        assert config.history.file == "~/.bash_history"
        assert config.history.ignore_patterns == []
        assert config.history.use_default_ignores is True
        assert config.lint.enabled is True
        assert config.lint.shell == "bash"
        assert config.logging.level == "ERROR"

    def test_load_without_file(self, config_file):
        config = load_config()
        assert config.storage.db_path == StorageConfig().db_path

    def test_save_and_load(self, config_file):
        config = AppConfig(
            history=HistoryConfig(file="/tmp/zsh_history", ignore_patterns=[r"^vim\b"]),
            lint=LintConfig(enabled=False, timeout=3),
            storage=StorageConfig(db_path="/tmp/commands.db"),
        )

        save_config(config)
        assert config_file.exists()

        loaded = load_config()
        assert loaded.history.file == "/tmp/zsh_history"
        assert loaded.history.ignore_patterns == [r"^vim\b"]
        assert loaded.lint.enabled is False
        assert loaded.lint.timeout == 3
        assert loaded.storage.db_path == "/tmp/commands.db"


class TestEnvironmentOverrides:
    def test_db_path(self, config_file, monkeypatch):
        monkeypatch.setenv("SHELL_CMD_BOOK_DB", "/data/book.db")
        assert load_config().storage.db_path == "/data/book.db"

    def test_history_file(self, config_file, monkeypatch):
        monkeypatch.setenv("SHELL_CMD_BOOK_HISTFILE", "/data/history")
        assert load_config().history.file == "/data/history"

    def test_debug_enables_debug_logging(self, config_file, monkeypatch):
        monkeypatch.setenv("DEBUG", "1")
        assert load_config().logging.level == "DEBUG"

    def test_env_wins_over_file(self, config_file, monkeypatch):
        save_config(AppConfig(storage=StorageConfig(db_path="/from/file.db")))
        monkeypatch.setenv("SHELL_CMD_BOOK_DB", "/from/env.db")
        assert load_config().storage.db_path == "/from/env.db"

