"""Task and execution result models for the authorization queue."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from shellpilot.ai.intent import Command
from shellpilot.security.base import CheckResult

__all__ = ["TRANSITIONS", "ExecutionResult", "Task", "TaskStatus", "utc_now"]


class TaskStatus(str, Enum):
    """Lifecycle state of a queued task."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"

    def __str__(self) -> str:
        """Return string representation of the status."""
        return self.value

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition is possible."""
        return not TRANSITIONS.get(self)


# Allowed edges of the task state machine. Statuses missing here are terminal.
TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.APPROVED, TaskStatus.REJECTED}),
    TaskStatus.APPROVED: frozenset({TaskStatus.EXECUTING}),
    TaskStatus.EXECUTING: frozenset({TaskStatus.COMPLETED, TaskStatus.FAILED}),
}


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class ExecutionResult(BaseModel):
    """Outcome of running a task's command.

    Attributes:
        exit_code: Process exit code (-1 when the process was killed on timeout)
        output: Combined stdout and stderr
        error: Description of what went wrong, empty on success
    """

    model_config = ConfigDict(frozen=True)

    exit_code: int = 0
    output: str = ""
    error: str = ""

    @property
    def succeeded(self) -> bool:
        """True when the command exited 0 without an error."""
        return self.exit_code == 0 and not self.error


class Task(BaseModel):
    """A command awaiting or having gone through authorization and execution.

    Example:
        >>> task = Task.create("session-1", Command(cmd="rm", args=["x"]), check)
        >>> task.status
        <TaskStatus.PENDING: 'pending'>
        >>> task.transition_status(TaskStatus.COMPLETED)
        False
        >>> task.transition_status(TaskStatus.APPROVED)
        True
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    session_id: str = Field(frozen=True)
    command: Command
    check_result: CheckResult
    status: TaskStatus = TaskStatus.PENDING
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    result: ExecutionResult | None = None

    @classmethod
    def create(
        cls, session_id: str, command: Command, check_result: CheckResult
    ) -> Task:
        """Create a new pending task with a fresh ID."""
        now = utc_now()
        return cls(
            session_id=session_id,
            command=command,
            check_result=check_result,
            created_at=now,
            updated_at=now,
        )

    def can_transition_to(self, status: TaskStatus) -> bool:
        """Return True if the state machine allows moving to ``status``."""
        return status in TRANSITIONS.get(self.status, frozenset())

    def transition_status(self, status: TaskStatus) -> bool:
        """Move to ``status`` if allowed.

        Returns:
            False, with the task left untouched, if the edge is not allowed.
        """
        if not self.can_transition_to(status):
            return False
        self.status = status
        self.updated_at = utc_now()
        return True

    def set_result(self, result: ExecutionResult) -> None:
        """Attach an execution result."""
        self.result = result
        self.updated_at = utc_now()

    def to_dict(self) -> dict:
        """Serialize for the queue file; ``result`` is omitted when absent."""
        data = self.model_dump(mode="json")
        if data.get("result") is None:
            data.pop("result", None)
        return data
