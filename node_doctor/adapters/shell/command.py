"""
Subprocess runner: bounded-time command execution.

Every probe that shells out goes through here.  A missing binary, a
timeout or a nonzero exit is an expected condition on a developer
machine, so callers get ``None`` instead of an exception.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


@dataclass
class CommandResult:
    """Exit status and captured output of one command."""

    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def _resolve(command: str) -> str:
    # npm/yarn/pnpm are .cmd shims on Windows; which() finds them via PATHEXT
    return shutil.which(command) or command


def run(
    command: str,
    args: list[str] | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    cwd: str | None = None,
) -> CommandResult | None:
    """Run a command and capture its output.

    Returns:
        CommandResult for any exit status, or None if the binary could
        not be started or the timeout expired.
    """
    argv = [_resolve(command), *(args or [])]
    try:
        proc = subprocess.run(
            argv,
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=cwd,
        )
    except subprocess.TimeoutExpired:
        logger.debug("Command timed out after %.0fs: %s", timeout, " ".join(argv))
        return None
    except (FileNotFoundError, PermissionError, OSError) as e:
        logger.debug("Command not runnable: %s (%s)", command, e)
        return None

    return CommandResult(
        returncode=proc.returncode,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
    )


def run_command(
    command: str,
    args: list[str] | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> str | None:
    """Run a command and return its stripped stdout, or None on any failure."""
    result = run(command, args, timeout=timeout)
    if result is None or not result.ok:
        return None
    return result.stdout.strip()


def command_exists(command: str) -> bool:
    """Whether the command resolves on PATH."""
    return shutil.which(command) is not None


def get_node_version(node_path: str, timeout: float = DEFAULT_TIMEOUT) -> str | None:
    """Run ``<node_path> --version`` and return e.g. ``"v20.11.0"``."""
    return run_command(node_path, ["--version"], timeout=timeout)
