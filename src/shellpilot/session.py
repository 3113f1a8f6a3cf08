"""Current chat session and its on-disk layout.

The session ID names the directory holding the session's task queue::

    <config_dir>/sessions/current.json
    <config_dir>/sessions/<session_id>/queue.json

``current.json`` also keeps the most recent conversation messages.
"""

from __future__ import annotations

import contextlib
import json
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, ValidationError

from shellpilot.exceptions import PersistenceError
from shellpilot.queue.directory import QUEUE_FILE_NAME
from shellpilot.queue.models import utc_now

logger = logging.getLogger(__name__)

__all__ = [
    "CURRENT_SESSION_FILE",
    "MAX_HISTORY",
    "SESSIONS_DIR_NAME",
    "Message",
    "Session",
    "generate_session_id",
]

SESSIONS_DIR_NAME = "sessions"
CURRENT_SESSION_FILE = "current.json"
MAX_HISTORY = 100


def generate_session_id() -> str:
    """Return a new session ID based on the current Unix time."""
    return f"session-{int(time.time())}"


class Message(BaseModel):
    """One conversation turn."""

    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=utc_now)


class Session(BaseModel):
    """The current session, persisted in ``sessions/current.json``.

    Example:
        >>> session = Session.load_or_create(Path("~/.shellpilot").expanduser())
        >>> session.queue_path
        PosixPath('/home/me/.shellpilot/sessions/session-1700000000/queue.json')
    """

    id: str = Field(default_factory=generate_session_id, frozen=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    messages: list[Message] = Field(default_factory=list)

    sessions_dir: Path = Field(default=Path(SESSIONS_DIR_NAME), exclude=True)

    @classmethod
    def load_or_create(cls, config_dir: Path) -> Session:
        """Load the current session or start and persist a new one.

        Raises:
            PersistenceError: If ``current.json`` exists but cannot be read.
        """
        sessions_dir = config_dir / SESSIONS_DIR_NAME
        path = sessions_dir / CURRENT_SESSION_FILE
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            session = cls(sessions_dir=sessions_dir)
            session.save()
            logger.info(f"Started session {session.id}")
            return session
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Failed to load session from {path}: {e}") from e

        try:
            session = cls.model_validate({**data, "sessions_dir": sessions_dir})
        except ValidationError as e:
            raise PersistenceError(f"Invalid session file {path}: {e}") from e
        logger.debug(f"Resumed session {session.id}")
        return session

    @property
    def path(self) -> Path:
        """Location of ``current.json``."""
        return self.sessions_dir / CURRENT_SESSION_FILE

    @property
    def queue_path(self) -> Path:
        """Location of this session's queue file."""
        return self.sessions_dir / self.id / QUEUE_FILE_NAME

    def add_message(self, role: Literal["user", "assistant"], content: str) -> None:
        """Record a conversation turn and save, keeping the last MAX_HISTORY."""
        self.messages.append(Message(role=role, content=content))
        self.messages = self.messages[-MAX_HISTORY:]
        self.save()

    def save(self) -> None:
        """Atomically write ``current.json``.

        Raises:
            PersistenceError: If the file cannot be written.
        """
        self.updated_at = utc_now()
        temp_path = self.path.with_suffix(".tmp")
        try:
            self.sessions_dir.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as f:
                f.write(self.model_dump_json(indent=2))
            temp_path.replace(self.path)
        except OSError as e:
            with contextlib.suppress(OSError):
                temp_path.unlink(missing_ok=True)
            raise PersistenceError(f"Failed to save session to {self.path}: {e}") from e
