"""
External command execution for haxekit.

Thin wrapper over subprocess.run that captures output, logs the command line
and turns failures into ProcessExecutionError.
"""

import logging
import subprocess
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from haxekit.core.exceptions import ProcessExecutionError

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    """Captured result of an external command."""

    stdout: str
    stderr: str
    exit_code: int


def run_process(
    cmd: str,
    args: Sequence[str] = (),
    ignore_return_code: bool = False,
    env: Optional[Dict[str, str]] = None,
    timeout: Optional[int] = None,
) -> ProcessResult:
    """
    Run a command and capture its output.

    Args:
        cmd: Executable name or path (looked up on PATH)
        args: Command arguments
        ignore_return_code: If True, a non-zero exit is returned, not raised
        env: Environment for the child (default: current process environment)
        timeout: Optional timeout in seconds

    Returns:
        ProcessResult with decoded stdout/stderr and exit code

    Raises:
        ProcessExecutionError: If the command cannot be started, times out,
            or exits non-zero while ignore_return_code is False

    Example:
        >>> result = run_process("otool", ["-l", "/opt/haxe/haxelib"])
        >>> "/opt/neko" in result.stdout
    """
    command = [str(cmd), *[str(a) for a in args]]
    logger.debug(f"Running: {' '.join(command)}")

    try:
        completed = subprocess.run(
            command,
            capture_output=True,
            text=True,
            env=env,
            timeout=timeout,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        raise ProcessExecutionError(command, stderr=str(e)) from e

    if completed.stdout:
        logger.debug(completed.stdout.rstrip())

    if completed.returncode != 0 and not ignore_return_code:
        raise ProcessExecutionError(command, completed.returncode, completed.stderr)

    return ProcessResult(
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
        exit_code=completed.returncode,
    )


__all__ = ["ProcessResult", "run_process"]
