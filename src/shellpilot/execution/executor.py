"""Execution of approved tasks from a task queue."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from shellpilot.exceptions import InvalidTransitionError, ShellpilotError
from shellpilot.execution.runner import ProcessRunner, SubprocessRunner, run_guarded
from shellpilot.queue.events import TaskEvent, TaskEventBus
from shellpilot.queue.models import ExecutionResult, Task, TaskStatus

if TYPE_CHECKING:
    from shellpilot.queue.manager import TaskQueue

logger = logging.getLogger(__name__)

__all__ = ["DEFAULT_TIMEOUT", "TaskExecutor"]

DEFAULT_TIMEOUT = 30.0


class TaskExecutor:
    """Drives approved tasks through execution to a terminal status.

    A command that fails to run or exits non-zero is not an executor error:
    it is recorded on the task, which ends up failed. Only queue problems
    (unknown task, wrong status, persistence) raise.

    Example:
        >>> executor = TaskExecutor(queue, events=bus)
        >>> result = executor.execute_task(task.id)
        >>> queue.get_task(task.id).status
        <TaskStatus.COMPLETED: 'completed'>
    """

    def __init__(
        self,
        queue: TaskQueue,
        runner: ProcessRunner | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        events: TaskEventBus | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            queue: Queue holding the tasks
            runner: Process runner (default: SubprocessRunner)
            timeout: Default deadline per task in seconds
            events: Bus notified on every status change
        """
        self.queue = queue
        self.runner = runner or SubprocessRunner()
        self.timeout = timeout
        self.events = events

    def execute_task(self, task_id: str, timeout: float | None = None) -> ExecutionResult:
        """Run one approved task and record its result.

        Args:
            task_id: ID of an approved task
            timeout: Deadline in seconds, defaults to the executor's

        Returns:
            The recorded execution result.

        Raises:
            TaskNotFoundError: If the task does not exist.
            InvalidTransitionError: If the task is not approved.
            PersistenceError: If a status change cannot be saved.
        """
        task = self.queue.get_task(task_id)
        if task.status != TaskStatus.APPROVED:
            raise InvalidTransitionError(task_id, str(task.status), str(TaskStatus.EXECUTING))

        task = self.queue.mark_executing(task_id)
        self._publish(task)
        logger.info(f"Executing task {task_id}: {task.command.command_line}")

        deadline = self.timeout if timeout is None else timeout
        outcome = run_guarded(self.runner, task.command, deadline)
        exit_code = outcome.exit_code
        if outcome.error and exit_code == 0:
            exit_code = 1
        result = ExecutionResult(exit_code=exit_code, output=outcome.output, error=outcome.error)

        task = self.queue.set_task_result(task_id, result)
        self._publish(task)
        logger.info(f"Task {task_id} {task.status} (exit code {result.exit_code})")
        return result

    def execute_all_approved(self) -> tuple[list[ExecutionResult], ShellpilotError | None]:
        """Run every task that is approved at call time.

        Individual failures do not stop the batch.

        Returns:
            Results of the tasks that were executed, in queue order, and the
            last error raised while executing, if any.
        """
        results: list[ExecutionResult] = []
        last_error: ShellpilotError | None = None

        approved = [t for t in self.queue.get_all_tasks() if t.status == TaskStatus.APPROVED]
        for task in approved:
            try:
                results.append(self.execute_task(task.id))
            except ShellpilotError as e:
                logger.error(f"Could not execute task {task.id}: {e}")
                last_error = e

        return results, last_error

    def _publish(self, task: Task) -> None:
        if self.events is not None:
            self.events.publish(
                TaskEvent(
                    task_id=task.id,
                    session_id=task.session_id,
                    status=task.status,
                    result=task.result,
                )
            )
