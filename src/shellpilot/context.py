"""Per-invocation application context.

Everything a command needs (configuration, config directory, current session)
is carried by an ``AppContext`` that is passed explicitly to the components
built from it. Nothing is stored in module globals, so tests can create as
many independent contexts as they like.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console

from shellpilot.config.loader import get_config_dir
from shellpilot.config.models import ShellpilotConfig
from shellpilot.core.orchestrator import Orchestrator
from shellpilot.execution.executor import TaskExecutor
from shellpilot.execution.runner import SubprocessRunner
from shellpilot.queue.directory import QueueDirectory
from shellpilot.queue.events import TaskEventBus
from shellpilot.queue.manager import TaskQueue
from shellpilot.security.engine import PolicyEngine
from shellpilot.session import SESSIONS_DIR_NAME, Session

if TYPE_CHECKING:
    from shellpilot.ai.intent import IntentSource
    from shellpilot.core.orchestrator import Confirmer

logger = logging.getLogger(__name__)

__all__ = ["AppContext"]


@dataclass
class AppContext:
    """Configuration and shared services for one shellpilot invocation.

    Attributes:
        config: Validated configuration
        config_dir: Directory holding config.yaml and the sessions directory
        console: Console for user-facing output
        events: Bus for task state changes
        session: Current session, None in incognito mode or before
            ``start_session``
    """

    config: ShellpilotConfig = field(default_factory=ShellpilotConfig)
    config_dir: Path = field(default_factory=get_config_dir)
    console: Console = field(default_factory=Console)
    events: TaskEventBus = field(default_factory=TaskEventBus)
    session: Session | None = None

    @property
    def sessions_dir(self) -> Path:
        """Directory with one sub-directory per session."""
        return self.config_dir / SESSIONS_DIR_NAME

    @property
    def timeout(self) -> float:
        """Deadline for one command in seconds."""
        return float(self.config.execution.timeout)

    @property
    def stale_after(self) -> timedelta:
        """Age after which an executing task counts as interrupted."""
        return timedelta(seconds=2 * self.config.execution.timeout)

    def start_session(self) -> Session:
        """Load or create the current session and attach it to the context."""
        if self.session is None:
            self.session = Session.load_or_create(self.config_dir)
        return self.session

    def policy_engine(self) -> PolicyEngine:
        """Build a policy engine from the security policy."""
        return PolicyEngine(self.config.security)

    def runner(self) -> SubprocessRunner:
        """Build a process runner honoring the working directory setting."""
        return SubprocessRunner(self.config.execution.working_directory)

    def session_queue(self) -> TaskQueue | None:
        """Open the current session's queue, None without a session."""
        if self.session is None:
            return None
        return TaskQueue(self.session.queue_path, self.session.id)

    def queue_directory(self) -> QueueDirectory:
        """Load the queues of every session."""
        return QueueDirectory(self.sessions_dir)

    def executor(self, queue: TaskQueue) -> TaskExecutor:
        """Build a task executor for a queue, publishing on the context's bus."""
        return TaskExecutor(
            queue,
            runner=self.runner(),
            timeout=self.timeout,
            events=self.events,
        )

    def orchestrator(self, intent_source: IntentSource, confirmer: Confirmer) -> Orchestrator:
        """Build the request orchestrator for the chat command."""
        return Orchestrator(
            intent_source=intent_source,
            policy=self.policy_engine(),
            confirmer=confirmer,
            runner=self.runner(),
            queue=self.session_queue(),
            session=self.session,
            console=self.console,
            timeout=self.timeout,
            max_output_lines=self.config.execution.max_output_lines,
            system_prompt=self.config.system_prompt or "",
        )
