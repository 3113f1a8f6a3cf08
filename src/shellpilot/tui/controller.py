"""Queue operations behind the task review screen.

The controller is independent of Textual: it approves, rejects and executes
tasks across all session queues and publishes a ``TaskEvent`` for every status
change, so any front end can follow along.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from shellpilot.queue.events import TaskEvent, TaskEventBus
from shellpilot.queue.models import Task, TaskStatus

if TYPE_CHECKING:
    from collections.abc import Callable

    from shellpilot.execution.executor import TaskExecutor
    from shellpilot.queue.directory import QueueDirectory
    from shellpilot.queue.manager import TaskQueue
    from shellpilot.queue.models import ExecutionResult

logger = logging.getLogger(__name__)

__all__ = ["VISIBLE_STATUSES", "TaskQueueController"]

# Statuses listed on the review screen by default
VISIBLE_STATUSES = (TaskStatus.PENDING, TaskStatus.EXECUTING)


class TaskQueueController:
    """Authorize and reject tasks from every session queue.

    Example:
        >>> controller = TaskQueueController(ctx.queue_directory(), ctx.executor, ctx.events)
        >>> [t.id for t in controller.visible_tasks()]
        ['0c1f...', '9ab2...']
        >>> controller.authorize('0c1f...').exit_code
        0
    """

    def __init__(
        self,
        directory: QueueDirectory,
        executor_factory: Callable[[TaskQueue], TaskExecutor],
        events: TaskEventBus,
    ) -> None:
        """Initialize the controller.

        Args:
            directory: Loaded session queues
            executor_factory: Builds an executor for a queue; executors must
                publish on ``events`` for execution progress to be visible
            events: Bus receiving approve and reject notifications
        """
        self.directory = directory
        self.executor_factory = executor_factory
        self.events = events

    def visible_tasks(self, include: set[str] | None = None) -> list[Task]:
        """Return pending and executing tasks ordered by session, then creation.

        Args:
            include: IDs of tasks to list whatever their status
        """
        include = include or set()
        tasks = [
            task
            for task in self.directory.all_tasks()
            if task.status in VISIBLE_STATUSES or task.id in include
        ]
        return sorted(tasks, key=lambda t: (t.session_id, t.created_at))

    def get_task(self, task_id: str) -> Task:
        """Return a copy of a task from whichever queue owns it."""
        return self.directory.find_queue(task_id).get_task(task_id)

    def authorize(self, task_id: str) -> ExecutionResult:
        """Approve a pending task and execute it right away.

        Blocks until the command finishes; call it off the UI thread.

        Raises:
            TaskNotFoundError: If no queue owns the task.
            InvalidTransitionError: If the task is not pending.
            PersistenceError: If a status change cannot be saved.
        """
        queue = self.directory.find_queue(task_id)
        task = queue.approve_task(task_id)
        logger.info(f"Authorized task {task_id}")
        self._publish(task)
        return self.executor_factory(queue).execute_task(task_id)

    def reject(self, task_id: str) -> Task:
        """Reject a pending task."""
        task = self.directory.find_queue(task_id).reject_task(task_id)
        logger.info(f"Rejected task {task_id}")
        self._publish(task)
        return task

    def _publish(self, task: Task) -> None:
        self.events.publish(
            TaskEvent(
                task_id=task.id,
                session_id=task.session_id,
                status=task.status,
                result=task.result,
            )
        )
