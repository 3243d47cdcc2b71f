"""System utility checks."""

from __future__ import annotations

import shutil
import subprocess


def find_shellcheck(executable: str = "shellcheck") -> str | None:
    """Return the full path of shellcheck, or None when it is not installed."""
    return shutil.which(executable)


def check_shellcheck(executable: str = "shellcheck") -> tuple[bool, str]:
    """Check if shellcheck is installed and return its version."""
    path = find_shellcheck(executable)
    if not path:
        return False, "shellcheck not found. Linting is disabled (https://www.shellcheck.net)"
    try:
        result = subprocess.run(
            [path, "--version"],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except subprocess.TimeoutExpired:
        return False, "shellcheck version check timed out"
    except OSError as e:
        return False, f"Error checking shellcheck: {e}"

    for line in result.stdout.splitlines():
        if line.startswith("version:"):
            return True, line.split(":", 1)[1].strip()
    return True, result.stdout.strip() or result.stderr.strip()
