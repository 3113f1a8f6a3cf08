"""Terminal front end: authorization prompt, chat input and batch runs."""

from __future__ import annotations

__all__ = ["ChatInput", "ConsoleConfirmer", "print_task_table", "run_approved_tasks"]

from shellpilot.cli.batch import print_task_table, run_approved_tasks
from shellpilot.cli.confirm import ConsoleConfirmer
from shellpilot.cli.input import ChatInput
