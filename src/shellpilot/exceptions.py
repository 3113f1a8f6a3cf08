"""Exceptions raised by the task queue and executor.

Policy decisions are never raised: a denied command or a command that needs
authorization is reported through ``CheckResult``. Command failures are
recorded as ``ExecutionResult`` data. Only queue bookkeeping problems are
exceptions.
"""

from __future__ import annotations


class ShellpilotError(Exception):
    """Base exception for shellpilot operations."""


class TaskNotFoundError(ShellpilotError):
    """Raised when a task ID is not present in the queue.

    Attributes:
        task_id: The ID that was looked up.
    """

    def __init__(self, task_id: str) -> None:
        super().__init__(f"task not found: {task_id}")
        self.task_id = task_id


class InvalidTransitionError(ShellpilotError):
    """Raised when a task is not in the source state a transition requires.

    The task is left untouched, both in memory and on disk.

    Attributes:
        task_id: ID of the task.
        current: Status the task was in.
        target: Status that was requested.
    """

    def __init__(self, task_id: str, current: str, target: str) -> None:
        super().__init__(
            f"cannot transition task {task_id} from {current} to {target}"
        )
        self.task_id = task_id
        self.current = current
        self.target = target


class PersistenceError(ShellpilotError):
    """Raised when the queue file cannot be read, parsed or written."""
