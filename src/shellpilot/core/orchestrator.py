"""Request orchestration: from natural language to executed commands.

One call to :meth:`Orchestrator.process` handles one user request:

1. A trailing ``&`` marks the request as async and is stripped once
2. The intent source turns the text into commands
3. Each command is checked by the policy engine, then denied, queued,
   confirmed interactively or run right away
4. Successful output is shown truncated and summarized by the AI

A failing command never stops the commands after it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from rich.console import Console
from rich.markup import escape

from shellpilot.execution.executor import DEFAULT_TIMEOUT
from shellpilot.execution.runner import ProcessRunner, RunOutcome, SubprocessRunner, run_guarded
from shellpilot.security.base import CheckResult
from shellpilot.security.engine import PolicyEngine

if TYPE_CHECKING:
    from shellpilot.ai.intent import Command, IntentSource
    from shellpilot.queue.manager import TaskQueue
    from shellpilot.session import Session

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_MAX_OUTPUT_LINES",
    "CommandOutcome",
    "ConfirmDecision",
    "Confirmer",
    "Disposition",
    "Orchestrator",
    "parse_async_syntax",
    "strip_async_syntax",
    "truncate_output",
]

DEFAULT_MAX_OUTPUT_LINES = 20


class ConfirmDecision(str, Enum):
    """Answer to an interactive authorization prompt."""

    APPROVED = "approved"
    SKIPPED = "skipped"
    QUIT_ALL = "quit_all"


@runtime_checkable
class Confirmer(Protocol):
    """Asks a human whether a flagged command may run."""

    def confirm(self, command: Command, check_result: CheckResult) -> ConfirmDecision:
        """Return the user's decision for one command."""
        ...


class Disposition(str, Enum):
    """What happened to one command of a request."""

    DENIED = "denied"
    QUEUED = "queued"
    SKIPPED = "skipped"
    EXECUTED = "executed"
    FAILED = "failed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class CommandOutcome:
    """Record of how one command was handled.

    Attributes:
        command: The command as processed (``is_async`` already applied)
        disposition: What happened to it
        check_result: Policy decision, None for commands aborted before checking
        run: Process outcome for executed or failed commands
        task_id: Queue task ID for queued commands
        analysis: AI summary of the output, empty when unavailable
    """

    command: Command
    disposition: Disposition
    check_result: CheckResult | None = None
    run: RunOutcome | None = None
    task_id: str | None = None
    analysis: str = ""


def parse_async_syntax(text: str) -> bool:
    """Return True if the request ends with ``&``."""
    return text.strip().endswith("&")


def strip_async_syntax(text: str) -> str:
    """Remove exactly one trailing ``&`` and surrounding whitespace.

    Example:
        >>> strip_async_syntax("create folder & &")
        'create folder &'
        >>> strip_async_syntax("create folder&")
        'create folder'
    """
    trimmed = text.strip()
    if trimmed.endswith("&"):
        return trimmed[:-1].strip()
    return trimmed


def truncate_output(
    output: str, max_lines: int = DEFAULT_MAX_OUTPUT_LINES
) -> tuple[list[str], int]:
    """Split output into lines and keep at most ``max_lines`` of them.

    Returns:
        The kept lines and the number of lines left out.
    """
    lines = output.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    if len(lines) <= max_lines:
        return lines, 0
    return lines[:max_lines], len(lines) - max_lines


class Orchestrator:
    """Runs the request flow for the chat command.

    Example:
        >>> orchestrator = Orchestrator(
        ...     intent_source=ChatModelIntentSource(model),
        ...     policy=PolicyEngine(config.security),
        ...     confirmer=ConsoleConfirmer(),
        ...     queue=queue,
        ... )
        >>> outcomes = orchestrator.process("clean the build directory &")
        >>> outcomes[0].disposition
        <Disposition.QUEUED: 'queued'>
    """

    def __init__(
        self,
        intent_source: IntentSource,
        policy: PolicyEngine,
        confirmer: Confirmer,
        runner: ProcessRunner | None = None,
        queue: TaskQueue | None = None,
        session: Session | None = None,
        console: Console | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_output_lines: int = DEFAULT_MAX_OUTPUT_LINES,
        system_prompt: str = "",
    ) -> None:
        """Initialize the orchestrator.

        Args:
            intent_source: AI backend turning text into commands
            policy: Policy engine checking every command
            confirmer: Interactive authorization prompt
            runner: Process runner (default: SubprocessRunner)
            queue: Task queue for async commands; without one, async commands
                that need authorization are confirmed interactively
            session: Session recording the conversation, None for incognito
            console: Rich console for user-facing output
            timeout: Deadline per command in seconds
            max_output_lines: Output lines shown before truncating
            system_prompt: Default system prompt for intent parsing
        """
        self.intent_source = intent_source
        self.policy = policy
        self.confirmer = confirmer
        self.runner = runner or SubprocessRunner()
        self.queue = queue
        self.session = session
        self.console = console or Console()
        self.timeout = timeout
        self.max_output_lines = max_output_lines
        self.system_prompt = system_prompt

    def process(self, text: str, system_prompt: str = "") -> list[CommandOutcome]:
        """Handle one user request.

        Args:
            text: Natural-language request, optionally ending with ``&``
            system_prompt: Overrides the default system prompt for this request

        Returns:
            One outcome per command, in order.

        Raises:
            IntentParseError: If the AI reply cannot be understood.
            PersistenceError: If an async command cannot be queued.
        """
        is_async = parse_async_syntax(text)
        if is_async:
            text = strip_async_syntax(text)

        if self.session is not None:
            self.session.add_message("user", text)

        self.console.print("[dim]Thinking...[/dim]")
        intent = self.intent_source.parse_intent(text, system_prompt or self.system_prompt)

        commands = list(intent.commands)
        if is_async:
            commands = [cmd.model_copy(update={"is_async": True}) for cmd in commands]
        logger.debug(f"Intent: {len(commands)} commands (async={is_async})")

        if intent.reason:
            self.console.print(f"[bold]Plan:[/bold] {escape(intent.reason)}")
        if intent.needs_confirm:
            self.console.print(
                "[yellow]The assistant marked this plan as needing confirmation.[/yellow]"
            )

        outcomes: list[CommandOutcome] = []
        for index, cmd in enumerate(commands, start=1):
            outcome = self._handle(cmd, index, len(commands))
            outcomes.append(outcome)
            if outcome.disposition == Disposition.ABORTED:
                self.console.print("[red]✗ Cancelled all remaining commands[/red]")
                outcomes.extend(
                    CommandOutcome(command=rest, disposition=Disposition.ABORTED)
                    for rest in commands[index:]
                )
                break

        if self.session is not None and intent.reason:
            self.session.add_message("assistant", intent.reason)

        return outcomes

    def _handle(self, cmd: Command, index: int, total: int) -> CommandOutcome:
        check = self.policy.check_command(cmd)

        if not check.allowed:
            logger.info(f"Denied: {cmd.command_line} ({check.reason})")
            self.console.print(f"[red]🚫 Denied:[/red] {escape(check.reason)}")
            return CommandOutcome(cmd, Disposition.DENIED, check_result=check)

        if check.requires_auth:
            if cmd.is_async and self.queue is not None:
                task = self.queue.add_task(cmd, check)
                self.console.print(f"[cyan]📋 Queued for authorization (ID: {task.id})[/cyan]")
                self.console.print("   Run 'shellpilot tasks' to review and authorize")
                return CommandOutcome(
                    command=cmd,
                    disposition=Disposition.QUEUED,
                    check_result=check,
                    task_id=task.id,
                )

            decision = self.confirmer.confirm(cmd, check)
            if decision == ConfirmDecision.QUIT_ALL:
                return CommandOutcome(cmd, Disposition.ABORTED, check_result=check)
            if decision == ConfirmDecision.SKIPPED:
                return CommandOutcome(cmd, Disposition.SKIPPED, check_result=check)

        return self._execute(cmd, check, index, total)

    def _execute(
        self, cmd: Command, check: CheckResult, index: int, total: int
    ) -> CommandOutcome:
        self.console.print(
            f"\n[bold]🔧 Executing \\[{index}/{total}]:[/bold] {escape(cmd.command_line)}"
        )
        run = run_guarded(self.runner, cmd, self.timeout)
        self._display_output(run.output)

        if run.error:
            self.console.print(
                f"[red]📊 Command failed (exit code {run.exit_code}): {escape(run.error)}[/red]"
            )
            return CommandOutcome(cmd, Disposition.FAILED, check_result=check, run=run)

        analysis = self._analyze(cmd, run.output)
        return CommandOutcome(
            command=cmd,
            disposition=Disposition.EXECUTED,
            check_result=check,
            run=run,
            analysis=analysis,
        )

    def _analyze(self, cmd: Command, output: str) -> str:
        try:
            analysis = self.intent_source.analyze_output(cmd.cmd, output)
        except Exception as e:
            logger.warning(f"Output analysis failed for {cmd.cmd}: {e}")
            self.console.print("[yellow]⚠️  Could not analyze output[/yellow]")
            return ""
        self.console.print(f"[green]✅ {escape(analysis)}[/green]")
        return analysis

    def _display_output(self, output: str) -> None:
        if not output:
            return
        lines, hidden = truncate_output(output, self.max_output_lines)
        if hidden:
            total = len(lines) + hidden
            self.console.print(f"📄 Output ({total} lines, showing first {len(lines)}):")
        else:
            self.console.print("📄 Output:")
        for line in lines:
            self.console.print(f"  {line}", markup=False, highlight=False)
        if hidden:
            self.console.print(f"  ... ({hidden} more lines)", markup=False, highlight=False)
