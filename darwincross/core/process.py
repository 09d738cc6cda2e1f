"""
Synchronous external process invocation.

Every external tool the pipeline depends on (configure, make) is run through
``run_command``, which never changes the working directory of the current
process and always captures output. ``check_command`` turns a non-zero exit
status into a ``BuildError``.
"""

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from darwincross.core.exceptions import BuildError

logger = logging.getLogger(__name__)

# Lines of captured output carried in error messages.
OUTPUT_TAIL_LINES = 40


@dataclass
class ProcessResult:
    """Outcome of an external process."""

    command: List[str]
    returncode: int
    output: str

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0

    def tail(self, lines: int = OUTPUT_TAIL_LINES) -> str:
        return "\n".join(self.output.splitlines()[-lines:])


CommandRunner = Callable[..., ProcessResult]


def run_command(
    command: Sequence[str],
    cwd: Path,
    env: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> ProcessResult:
    """
    Run a command to completion and capture its combined output.

    Args:
        command: Program and arguments
        cwd: Absolute working directory for the child process
        env: Extra environment variables layered over os.environ
        timeout: Optional timeout in seconds

    Returns:
        ProcessResult with the exit status and captured stdout/stderr

    Raises:
        BuildError: If the program cannot be started or times out
    """
    command = [str(part) for part in command]
    child_env = None
    if env:
        child_env = dict(os.environ)
        child_env.update(env)

    logger.info(f"Running: {' '.join(command)} (in {cwd})")

    try:
        completed = subprocess.run(
            command,
            cwd=str(cwd),
            env=child_env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise BuildError(
            f"Command not found: {command[0]}", command=command
        ) from e
    except subprocess.TimeoutExpired as e:
        raise BuildError(
            f"Command timed out after {timeout}s: {' '.join(command)}",
            command=command,
        ) from e

    output = completed.stdout or ""
    if output:
        logger.debug(output.rstrip())

    return ProcessResult(command=command, returncode=completed.returncode, output=output)


def check_command(
    command: Sequence[str],
    cwd: Path,
    step: str,
    runner: Optional[CommandRunner] = None,
    **kwargs,
) -> ProcessResult:
    """
    Run a command and raise BuildError unless it exits with status 0.

    Args:
        command: Program and arguments
        cwd: Working directory for the child process
        step: Human readable step name used in the error message
        runner: Alternative runner with the ``run_command`` signature

    Raises:
        BuildError: If the command exits non-zero
    """
    result = (runner or run_command)(command, cwd=cwd, **kwargs)

    if not result.succeeded:
        raise BuildError(
            f"{step} failed with exit code {result.returncode} "
            f"({' '.join(result.command)} in {cwd})\n{result.tail()}",
            command=result.command,
            returncode=result.returncode,
            output=result.output,
        )

    return result
