"""Regex filter for history commands not worth keeping."""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

DEFAULT_IGNORE_PATTERNS: list[str] = [
    r"^(ls|ll|la|l|pwd|clear|exit|logout|history|bg|fg|jobs)$",
    r"^cd(\s+\S+)?$",
    r"^(ls|ll|la)\s+(-\w+\s*)*$",
    r"^git\s+(status|diff|log)$",
]


class IgnoreFilter:
    """Match commands against a list of ignore regexes."""

    def __init__(self, patterns: list[str] | None = None, use_defaults: bool = True) -> None:
        self._patterns: list[re.Pattern[str]] = []
        sources = (DEFAULT_IGNORE_PATTERNS if use_defaults else []) + (patterns or [])
        for pattern in sources:
            try:
                self._patterns.append(re.compile(pattern))
            except re.error:
                logger.error("Invalid ignore pattern: %s", pattern)

    def matches(self, script: str) -> bool:
        """Return True when the script should not be imported."""
        for compiled in self._patterns:
            if compiled.search(script):
                logger.debug("Ignored command: %s (pattern: %s)", script, compiled.pattern)
                return True
        return False
