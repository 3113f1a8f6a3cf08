"""Task state change notifications.

Subscribers are plain callables invoked synchronously on the publishing
thread. UI code that needs to update widgets should hop back to its own
thread (for Textual, ``App.call_from_thread``).
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

from shellpilot.queue.models import ExecutionResult, TaskStatus

logger = logging.getLogger(__name__)

__all__ = ["TaskEvent", "TaskEventBus", "TaskListener"]


@dataclass(frozen=True)
class TaskEvent:
    """A task reached a new status."""

    task_id: str
    session_id: str
    status: TaskStatus
    result: ExecutionResult | None = None


TaskListener = Callable[[TaskEvent], None]


class TaskEventBus:
    """Fan-out of task events to registered listeners.

    Example:
        >>> bus = TaskEventBus()
        >>> seen = []
        >>> bus.subscribe(seen.append)
        >>> bus.publish(TaskEvent("id", "session-1", TaskStatus.EXECUTING))
        >>> seen[0].status
        <TaskStatus.EXECUTING: 'executing'>
    """

    def __init__(self) -> None:
        self._listeners: list[TaskListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: TaskListener) -> None:
        """Register a listener."""
        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: TaskListener) -> None:
        """Remove a listener; unknown listeners are ignored."""
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def publish(self, event: TaskEvent) -> None:
        """Deliver an event to every listener.

        A failing listener is logged and does not prevent delivery to the
        others.
        """
        with self._lock:
            listeners = list(self._listeners)

        logger.debug(f"Task {event.task_id} -> {event.status}")
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(f"Task event listener failed for {event.task_id}")
