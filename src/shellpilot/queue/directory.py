"""Discovery of every per-session queue under the sessions directory.

Layout::

    <config_dir>/sessions/
        current.json
        session-1700000000/queue.json
        session-1700000123/queue.json
"""

from __future__ import annotations

import logging
from pathlib import Path

from shellpilot.exceptions import PersistenceError, TaskNotFoundError
from shellpilot.queue.manager import TaskQueue
from shellpilot.queue.models import Task, TaskStatus

logger = logging.getLogger(__name__)

__all__ = ["QUEUE_FILE_NAME", "QueueDirectory"]

QUEUE_FILE_NAME = "queue.json"


class QueueDirectory:
    """All session queues found under one sessions directory.

    Queue files that fail to load do not hide the others: they are recorded
    in ``errors`` keyed by session ID so callers can report them.

    Attributes:
        sessions_dir: Directory holding one sub-directory per session
        queues: Loaded queues keyed by session ID, in session order
        errors: Load failures keyed by session ID
    """

    def __init__(self, sessions_dir: str | Path) -> None:
        self.sessions_dir = Path(sessions_dir)
        self.queues: dict[str, TaskQueue] = {}
        self.errors: dict[str, PersistenceError] = {}
        self.reload()

    def reload(self) -> None:
        """Rescan the sessions directory and reload every queue file."""
        self.queues = {}
        self.errors = {}
        if not self.sessions_dir.is_dir():
            logger.debug(f"No sessions directory at {self.sessions_dir}")
            return

        for session_dir in sorted(p for p in self.sessions_dir.iterdir() if p.is_dir()):
            queue_file = session_dir / QUEUE_FILE_NAME
            if not queue_file.exists():
                continue
            try:
                self.queues[session_dir.name] = TaskQueue(queue_file, session_dir.name)
            except PersistenceError as e:
                logger.warning(f"Skipping queue of session {session_dir.name}: {e}")
                self.errors[session_dir.name] = e

    def all_tasks(self) -> list[Task]:
        """Return copies of every task across all sessions."""
        return [task for queue in self.queues.values() for task in queue.get_all_tasks()]

    def tasks_with_status(self, *statuses: TaskStatus) -> list[Task]:
        """Return copies of the tasks in any of the given statuses."""
        return [task for task in self.all_tasks() if task.status in statuses]

    def find_queue(self, task_id: str) -> TaskQueue:
        """Return the queue that owns a task.

        Raises:
            TaskNotFoundError: If no loaded queue contains the task.
        """
        for queue in self.queues.values():
            if any(task.id == task_id for task in queue.get_all_tasks()):
                return queue
        raise TaskNotFoundError(task_id)
