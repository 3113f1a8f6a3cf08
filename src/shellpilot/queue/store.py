"""JSON file persistence for a task queue.

The queue file holds the whole task list::

    {"tasks": [{"id": "...", "status": "pending", ...}]}

Every save rewrites the file through a temporary sibling that is renamed over
the original, so readers never see a partially written file. Two processes
saving the same file still race: the last writer wins.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from shellpilot.exceptions import PersistenceError
from shellpilot.queue.models import Task

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

__all__ = ["QueueStore"]


class QueueStore:
    """Reads and writes the task list of one queue file.

    Example:
        >>> store = QueueStore(tmp_path / "queue.json")
        >>> store.load()
        []
        >>> store.save([task])
        >>> [t.id for t in store.load()] == [task.id]
        True
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> list[Task]:
        """Load all tasks.

        Returns:
            Persisted tasks in file order, or an empty list if the file does
            not exist yet.

        Raises:
            PersistenceError: If the file cannot be read or is not a valid queue.
        """
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return []
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Malformed queue file {self.path}: {e}") from e
        except OSError as e:
            raise PersistenceError(f"Failed to read queue file {self.path}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("tasks", []), list):
            raise PersistenceError(
                f"Malformed queue file {self.path}: expected an object with a 'tasks' list"
            )

        try:
            tasks = [Task.model_validate(item) for item in data.get("tasks") or []]
        except ValidationError as e:
            raise PersistenceError(f"Invalid task in {self.path}: {e}") from e

        logger.debug(f"Loaded {len(tasks)} tasks from {self.path}")
        return tasks

    def save(self, tasks: Iterable[Task]) -> None:
        """Atomically replace the file with the given tasks.

        Raises:
            PersistenceError: If the directory or file cannot be written.
        """
        payload: dict[str, Any] = {"tasks": [task.to_dict() for task in tasks]}
        temp_path = self.path.with_name(f".{self.path.name}.{os.getpid()}.tmp")

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
                f.write("\n")
            temp_path.replace(self.path)
        except OSError as e:
            with contextlib.suppress(OSError):
                temp_path.unlink(missing_ok=True)
            raise PersistenceError(f"Failed to write queue file {self.path}: {e}") from e

        logger.debug(f"Saved {len(payload['tasks'])} tasks to {self.path}")
