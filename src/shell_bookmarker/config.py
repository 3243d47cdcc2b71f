"""Configuration management using TOML + environment variables."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomllib
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[no-redef]

import tomli_w

CONFIG_DIR = Path.home() / ".shell-bookmarker"
CONFIG_FILE = CONFIG_DIR / "config.toml"

DEFAULT_HISTORY_FILE = "~/.bash_history"


@dataclass
class HistoryConfig:
    file: str = DEFAULT_HISTORY_FILE
    ignore_patterns: list[str] = field(default_factory=list)
    use_default_ignores: bool = True


@dataclass
class LintConfig:
    enabled: bool = True
    on_import: bool = True
    shellcheck_path: str = "shellcheck"
    shell: str = "bash"
    timeout: int = 10


@dataclass
class StorageConfig:
    db_path: str = "~/.shell-bookmarker/commands.db"


@dataclass
class LoggingConfig:
    level: str = "ERROR"
    file: str = "~/.shell-bookmarker/bookmarker.log"


@dataclass
class AppConfig:
    history: HistoryConfig = field(default_factory=HistoryConfig)
    lint: LintConfig = field(default_factory=LintConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def ensure_config_dir() -> None:
    """Create config directory with secure permissions."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    os.chmod(CONFIG_DIR, 0o700)


def load_config() -> AppConfig:
    """Load configuration from TOML file with env var overrides."""
    config = AppConfig()

    if CONFIG_FILE.exists():
        with open(CONFIG_FILE, "rb") as f:
            data = tomllib.load(f)

        history = data.get("history", {})
        config.history.file = history.get("file", config.history.file)
        config.history.ignore_patterns = history.get("ignore_patterns", [])
        config.history.use_default_ignores = history.get(
            "use_default_ignores", config.history.use_default_ignores
        )

        lint = data.get("lint", {})
        config.lint.enabled = lint.get("enabled", config.lint.enabled)
        config.lint.on_import = lint.get("on_import", config.lint.on_import)
        config.lint.shellcheck_path = lint.get("shellcheck_path", config.lint.shellcheck_path)
        config.lint.shell = lint.get("shell", config.lint.shell)
        config.lint.timeout = lint.get("timeout", config.lint.timeout)

        storage = data.get("storage", {})
        config.storage.db_path = storage.get("db_path", config.storage.db_path)

        logging_cfg = data.get("logging", {})
        config.logging.level = logging_cfg.get("level", config.logging.level)
        config.logging.file = logging_cfg.get("file", config.logging.file)

    # Environment variable overrides
    if env_db := os.environ.get("SHELL_CMD_BOOK_DB"):
        config.storage.db_path = env_db
    if env_histfile := os.environ.get("SHELL_CMD_BOOK_HISTFILE"):
        config.history.file = env_histfile
    if env_log_level := os.environ.get("SHELL_CMD_BOOK_LOG_LEVEL"):
        config.logging.level = env_log_level
    if os.environ.get("DEBUG"):
        config.logging.level = "DEBUG"

    return config


def save_config(config: AppConfig) -> None:
    """Save configuration to TOML file."""
    ensure_config_dir()

    data = {
        "history": {
            "file": config.history.file,
            "ignore_patterns": config.history.ignore_patterns,
            "use_default_ignores": config.history.use_default_ignores,
        },
        "lint": {
            "enabled": config.lint.enabled,
            "on_import": config.lint.on_import,
            "shellcheck_path": config.lint.shellcheck_path,
            "shell": config.lint.shell,
            "timeout": config.lint.timeout,
        },
        "storage": {
            "db_path": config.storage.db_path,
        },
        "logging": {
            "level": config.logging.level,
            "file": config.logging.file,
        },
    }

    with open(CONFIG_FILE, "wb") as f:
        tomli_w.dump(data, f)

    os.chmod(CONFIG_FILE, 0o600)

