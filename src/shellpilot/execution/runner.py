"""Process runner used to execute commands.

Commands run as an argument vector without a shell, so redirects and pipes in
arguments are passed to the program literally. Stdout and stderr are captured
and joined into one output string.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from shellpilot.ai.intent import Command

logger = logging.getLogger(__name__)

__all__ = [
    "TIMEOUT_EXIT_CODE",
    "ProcessRunner",
    "RunOutcome",
    "SubprocessRunner",
    "run_guarded",
]

# Exit code reported for a process killed at its deadline
TIMEOUT_EXIT_CODE = -1


@dataclass(frozen=True)
class RunOutcome:
    """What happened when a command ran.

    Attributes:
        output: Stdout followed by stderr, whitespace-trimmed
        exit_code: Process exit code
        error: Failure description, empty when the command exited 0
    """

    output: str = ""
    exit_code: int = 0
    error: str = ""


@runtime_checkable
class ProcessRunner(Protocol):
    """Protocol for anything that can run a Command."""

    def run(self, command: Command, timeout: float) -> RunOutcome:
        """Run a command with a deadline in seconds. Never raises for process failures."""
        ...


class SubprocessRunner:
    """Runs commands with ``subprocess.run``.

    Example:
        >>> runner = SubprocessRunner()
        >>> runner.run(Command(cmd="echo", args=["hi"]), timeout=5)
        RunOutcome(output='hi', exit_code=0, error='')
    """

    def __init__(self, working_directory: str | None = None) -> None:
        """Initialize the runner.

        Args:
            working_directory: Directory commands run in (None = current)
        """
        self.working_directory = working_directory

    def run(self, command: Command, timeout: float) -> RunOutcome:
        """Run a command and capture its output.

        Launch failures are reported with shell-style exit codes: 127 when the
        program does not exist, 126 when it cannot be executed.
        """
        argv = [command.cmd, *command.args]
        cwd = self.working_directory
        if cwd and not Path(cwd).is_dir():
            return RunOutcome(exit_code=1, error=f"working directory does not exist: {cwd}")

        logger.debug(f"Running {argv!r} (timeout={timeout}s)")
        try:
            completed = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=timeout,
                cwd=cwd,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            logger.warning(f"Command timed out after {timeout}s: {command.command_line}")
            return RunOutcome(
                output=_join_output(_as_text(e.stdout), _as_text(e.stderr)),
                exit_code=TIMEOUT_EXIT_CODE,
                error=f"command timed out after {timeout:g} seconds",
            )
        except FileNotFoundError:
            return RunOutcome(exit_code=127, error=f"executable not found: {command.cmd}")
        except PermissionError:
            return RunOutcome(exit_code=126, error=f"permission denied: {command.cmd}")
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            # ValueError: arguments with embedded NUL bytes
            return RunOutcome(exit_code=1, error=f"failed to start {command.cmd}: {e}")

        output = _join_output(completed.stdout, completed.stderr)
        if completed.returncode != 0:
            return RunOutcome(
                output=output,
                exit_code=completed.returncode,
                error=f"exit status {completed.returncode}",
            )
        return RunOutcome(output=output, exit_code=0)


def run_guarded(runner: ProcessRunner, command: Command, timeout: float) -> RunOutcome:
    """Run a command; an exception from the runner becomes a failed outcome."""
    try:
        return runner.run(command, timeout)
    except Exception as e:
        logger.exception(f"Runner raised for {command.command_line!r}")
        return RunOutcome(exit_code=1, error=f"runner error: {e}")


def _as_text(data: bytes | str | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def _join_output(stdout: str, stderr: str) -> str:
    output = stdout or ""
    if stderr:
        output += "\n" + stderr
    return output.strip()
