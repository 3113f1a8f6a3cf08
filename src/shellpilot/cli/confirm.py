"""Interactive authorization prompt for flagged commands."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt

from shellpilot.core.orchestrator import ConfirmDecision

if TYPE_CHECKING:
    from shellpilot.ai.intent import Command
    from shellpilot.security.base import CheckResult

logger = logging.getLogger(__name__)

_CHOICES = {
    "y": ConfirmDecision.APPROVED,
    "s": ConfirmDecision.SKIPPED,
    "q": ConfirmDecision.QUIT_ALL,
}


class ConsoleConfirmer:
    """Asks for authorization on the terminal.

    Shows the command with the policy warning and reason, then accepts
    ``y`` (run it), ``s`` (skip it) or ``q`` (cancel everything left).
    End of input counts as skip.

    Example:
        >>> confirmer = ConsoleConfirmer()
        >>> decision = confirmer.confirm(Command(cmd="rm", args=["x"]), check)
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def confirm(self, command: Command, check_result: CheckResult) -> ConfirmDecision:
        """Prompt until the user picks one of y/s/q."""
        lines = [f"[bold]Command:[/bold] {escape(command.command_line)}"]
        if check_result.warning:
            lines.append(f"[yellow]Warning:[/yellow] {escape(check_result.warning)}")
        if check_result.reason:
            lines.append(f"[dim]Reason:[/dim] {escape(check_result.reason)}")

        self.console.print()
        self.console.print(
            Panel(
                "\n".join(lines),
                title="⚠️  Authorization required",
                border_style="yellow",
            )
        )
        self.console.print(
            "[green]\\[y][/green] run  [cyan]\\[s][/cyan] skip  [red]\\[q][/red] cancel all"
        )

        try:
            choice = Prompt.ask(
                ">",
                choices=list(_CHOICES),
                show_choices=False,
                case_sensitive=False,
                console=self.console,
            )
        except EOFError:
            logger.debug("No input available, skipping command")
            self.console.print("[dim]⊘ Skipped[/dim]")
            return ConfirmDecision.SKIPPED

        decision = _CHOICES[choice]
        if decision == ConfirmDecision.APPROVED:
            self.console.print("[green]✓ Authorized[/green]")
        elif decision == ConfirmDecision.SKIPPED:
            self.console.print("[dim]⊘ Skipped[/dim]")
        return decision
