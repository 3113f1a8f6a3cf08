"""Persistent authorization queue for commands that need human approval."""

from shellpilot.queue.directory import QUEUE_FILE_NAME, QueueDirectory
from shellpilot.queue.events import TaskEvent, TaskEventBus, TaskListener
from shellpilot.queue.manager import TaskQueue
from shellpilot.queue.models import TRANSITIONS, ExecutionResult, Task, TaskStatus
from shellpilot.queue.store import QueueStore

__all__ = [
    "QUEUE_FILE_NAME",
    "TRANSITIONS",
    "ExecutionResult",
    "QueueDirectory",
    "QueueStore",
    "Task",
    "TaskEvent",
    "TaskEventBus",
    "TaskListener",
    "TaskQueue",
    "TaskStatus",
]
