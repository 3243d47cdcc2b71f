"""shellcheck wrapper producing a lint verdict for a script."""

from __future__ import annotations

import asyncio
import json
import logging

from shell_bookmarker.config import AppConfig
from shell_bookmarker.errors import LintUnavailable
from shell_bookmarker.storage.models import LintStatus
from shell_bookmarker.utils.system import find_shellcheck

logger = logging.getLogger(__name__)

# shellcheck exits 1 when it reports findings; anything else above 0 is a failure
_EXIT_FINDINGS = 1


class LintService:
    """Run shellcheck on command scripts."""

    def __init__(self, executable: str, shell: str = "bash", timeout: int = 10) -> None:
        self.executable = executable
        self.shell = shell
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: AppConfig) -> LintService:
        """Build the service, raising LintUnavailable when shellcheck is missing."""
        executable = find_shellcheck(config.lint.shellcheck_path)
        if executable is None:
            raise LintUnavailable(f"{config.lint.shellcheck_path} not found in PATH")
        return cls(executable, shell=config.lint.shell, timeout=config.lint.timeout)

    @classmethod
    def create(cls, config: AppConfig) -> LintService | None:
        """Build the service, or return None when linting is disabled or unavailable."""
        if not config.lint.enabled:
            logger.info("Linting disabled in configuration")
            return None
        try:
            return cls.from_config(config)
        except LintUnavailable as e:
            logger.warning("shellcheck command not found. Linting will be disabled: %s", e)
            return None

    async def check(self, script: str) -> LintStatus:
        """Lint a script and return its verdict."""
        cmd = [self.executable, "--shell", self.shell, "--format", "json", "-"]
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError:
            logger.exception("Failed to start shellcheck")
            return LintStatus.SHELLCHECK_FAILED

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                proc.communicate(script.encode("utf-8")),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            proc.kill()
            await proc.communicate()
            logger.warning("shellcheck timed out after %ds", self.timeout)
            return LintStatus.SHELLCHECK_FAILED

        if proc.returncode == 0:
            return LintStatus.OK
        if proc.returncode != _EXIT_FINDINGS:
            logger.warning(
                "shellcheck failed (exit %s): %s",
                proc.returncode,
                stderr_bytes.decode("utf-8", errors="replace").strip(),
            )
            return LintStatus.SHELLCHECK_FAILED
        return parse_findings(stdout_bytes.decode("utf-8", errors="replace"))


def parse_findings(output: str) -> LintStatus:
    """Reduce shellcheck's JSON findings to the most severe verdict."""
    try:
        findings = json.loads(output)
    except json.JSONDecodeError:
        logger.warning("Unparsable shellcheck output: %r", output[:200])
        return LintStatus.SHELLCHECK_FAILED
    if not isinstance(findings, list):
        return LintStatus.SHELLCHECK_FAILED

    levels = {finding.get("level") for finding in findings if isinstance(finding, dict)}
    if "error" in levels:
        return LintStatus.ERROR
    if "warning" in levels:
        return LintStatus.WARNING
    return LintStatus.OK
