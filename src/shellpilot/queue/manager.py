"""Thread-safe task queue backed by a JSON file.

The queue owns the task state machine::

    pending -> approved -> executing -> completed
            \\-> rejected             \\-> failed

Every mutation follows the same sequence under the queue lock: copy the
affected task, apply the change to the copy, persist the full list with the
copy in place, then swap the copy into memory. A rejected transition or a
failed save therefore leaves both memory and disk exactly as they were.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING

from shellpilot.exceptions import InvalidTransitionError, TaskNotFoundError
from shellpilot.queue.models import ExecutionResult, Task, TaskStatus, utc_now
from shellpilot.queue.store import QueueStore

if TYPE_CHECKING:
    from collections.abc import Callable

    from shellpilot.ai.intent import Command
    from shellpilot.security.base import CheckResult

logger = logging.getLogger(__name__)

__all__ = ["TaskQueue"]

INTERRUPTED_ERROR = "execution interrupted: task was still executing when shellpilot stopped"


class TaskQueue:
    """Task list of one session, persisted after every change.

    Example:
        >>> queue = TaskQueue(tmp_path / "queue.json", "session-1")
        >>> task = queue.add_task(Command(cmd="rm", args=["-rf", "/tmp/x"]), check)
        >>> queue.approve_task(task.id)
        >>> queue.mark_executing(task.id)
        >>> queue.set_task_result(task.id, ExecutionResult(exit_code=0))
        >>> queue.get_task(task.id).status
        <TaskStatus.COMPLETED: 'completed'>
    """

    def __init__(self, path: str | Path, session_id: str) -> None:
        """Load the queue file.

        Args:
            path: Queue file location; a missing file is an empty queue
            session_id: Session that newly added tasks belong to

        Raises:
            PersistenceError: If the file exists but cannot be loaded.
        """
        self.path = Path(path)
        self.session_id = session_id
        self.store = QueueStore(self.path)
        self._lock = threading.Lock()
        self._tasks: list[Task] = self.store.load()

    def add_task(self, command: Command, check_result: CheckResult) -> Task:
        """Append a new pending task and persist it.

        Returns:
            Copy of the created task.
        """
        task = Task.create(self.session_id, command, check_result)
        with self._lock:
            self.store.save([*self._tasks, task])
            self._tasks.append(task)
        logger.info(f"Queued task {task.id}: {command.command_line}")
        return task.model_copy(deep=True)

    def approve_task(self, task_id: str) -> Task:
        """Move a pending task to approved."""
        return self._transition(task_id, TaskStatus.APPROVED)

    def reject_task(self, task_id: str) -> Task:
        """Move a pending task to rejected."""
        return self._transition(task_id, TaskStatus.REJECTED)

    def mark_executing(self, task_id: str) -> Task:
        """Move an approved task to executing."""
        return self._transition(task_id, TaskStatus.EXECUTING)

    def set_task_result(self, task_id: str, result: ExecutionResult) -> Task:
        """Attach a result and finish an executing task.

        The task becomes completed when the result has exit code 0 and no
        error, failed otherwise.
        """
        target = TaskStatus.COMPLETED if result.succeeded else TaskStatus.FAILED
        return self._transition(task_id, target, lambda t: t.set_result(result))

    def recover_interrupted(self, older_than: timedelta) -> list[Task]:
        """Fail tasks left executing by a process that went away.

        Only tasks whose last update is older than ``older_than`` are touched,
        so a task being executed right now by another process survives as
        long as its deadline is shorter than the threshold.

        Returns:
            Copies of the tasks that were failed.
        """
        cutoff: datetime = utc_now() - older_than
        with self._lock:
            staged = [t.model_copy(deep=True) for t in self._tasks]
            recovered = []
            for task in staged:
                if task.status == TaskStatus.EXECUTING and task.updated_at < cutoff:
                    task.set_result(ExecutionResult(exit_code=1, error=INTERRUPTED_ERROR))
                    task.transition_status(TaskStatus.FAILED)
                    recovered.append(task)
            if not recovered:
                return []
            self.store.save(staged)
            self._tasks = staged

        for task in recovered:
            logger.warning(f"Failed interrupted task {task.id}: {task.command.command_line}")
        return [t.model_copy(deep=True) for t in recovered]

    def get_task(self, task_id: str) -> Task:
        """Return a copy of a task.

        Raises:
            TaskNotFoundError: If no task has this ID.
        """
        with self._lock:
            return self._tasks[self._index(task_id)].model_copy(deep=True)

    def get_all_tasks(self) -> list[Task]:
        """Return copies of all tasks in insertion order."""
        return self._select(lambda t: True)

    def get_pending_tasks(self) -> list[Task]:
        """Return copies of the tasks awaiting authorization."""
        return self._select(lambda t: t.status == TaskStatus.PENDING)

    def get_tasks_by_session(self, session_id: str) -> list[Task]:
        """Return copies of the tasks created by one session."""
        return self._select(lambda t: t.session_id == session_id)

    def _select(self, predicate: Callable[[Task], bool]) -> list[Task]:
        with self._lock:
            return [t.model_copy(deep=True) for t in self._tasks if predicate(t)]

    def _index(self, task_id: str) -> int:
        for i, task in enumerate(self._tasks):
            if task.id == task_id:
                return i
        raise TaskNotFoundError(task_id)

    def _transition(
        self,
        task_id: str,
        target: TaskStatus,
        update: Callable[[Task], None] | None = None,
    ) -> Task:
        """Single entry point for every status change.

        Raises:
            TaskNotFoundError: If no task has this ID.
            InvalidTransitionError: If the task is not in a valid source state.
            PersistenceError: If the change cannot be saved.
        """
        with self._lock:
            index = self._index(task_id)
            staged = self._tasks[index].model_copy(deep=True)
            if not staged.can_transition_to(target):
                raise InvalidTransitionError(task_id, str(staged.status), str(target))

            if update is not None:
                update(staged)
            staged.transition_status(target)

            tasks = list(self._tasks)
            tasks[index] = staged
            self.store.save(tasks)
            self._tasks = tasks

        logger.debug(f"Task {task_id} is now {target}")
        return staged.model_copy(deep=True)
