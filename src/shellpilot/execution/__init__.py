"""Command execution: the subprocess runner and the task executor."""

from shellpilot.execution.executor import DEFAULT_TIMEOUT, TaskExecutor
from shellpilot.execution.runner import (
    TIMEOUT_EXIT_CODE,
    ProcessRunner,
    RunOutcome,
    SubprocessRunner,
    run_guarded,
)

__all__ = [
    "DEFAULT_TIMEOUT",
    "TIMEOUT_EXIT_CODE",
    "ProcessRunner",
    "RunOutcome",
    "SubprocessRunner",
    "TaskExecutor",
    "run_guarded",
]
