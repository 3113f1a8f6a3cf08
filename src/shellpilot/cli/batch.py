"""Batch execution of approved tasks and plain-text queue listings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from rich.markup import escape
from rich.table import Table

from shellpilot.queue.models import TaskStatus

if TYPE_CHECKING:
    from rich.console import Console

    from shellpilot.context import AppContext
    from shellpilot.queue.models import Task

logger = logging.getLogger(__name__)

__all__ = ["BatchSummary", "print_task_table", "run_approved_tasks"]


@dataclass
class BatchSummary:
    """Counts from one batch run."""

    executed: int = 0
    failed: int = 0
    recovered: int = 0
    errors: int = 0


def run_approved_tasks(ctx: AppContext) -> BatchSummary:
    """Execute every approved task of every session and report each one.

    Tasks left executing by an earlier crash are failed first. A failing task
    is reported and counted; it never stops the batch.
    """
    console = ctx.console
    directory = ctx.queue_directory()
    summary = BatchSummary()

    for session_id, error in directory.errors.items():
        console.print(
            f"[red]Could not load queue of {escape(session_id)}: {escape(str(error))}[/red]"
        )
        summary.errors += 1

    if not directory.queues:
        console.print("No task queues found")
        return summary

    for session_id, queue in directory.queues.items():
        recovered = queue.recover_interrupted(ctx.stale_after)
        summary.recovered += len(recovered)
        for task in recovered:
            console.print(f"[yellow]Marked interrupted task {task.id[:8]} as failed[/yellow]")

        approved = [t.id for t in queue.get_all_tasks() if t.status == TaskStatus.APPROVED]
        if not approved:
            continue

        console.print(f"Session {escape(session_id)}: executing {len(approved)} approved tasks...")
        results, last_error = ctx.executor(queue).execute_all_approved()
        summary.executed += len(results)
        if last_error is not None:
            console.print(
                f"  [red]Some tasks could not be executed: {escape(str(last_error))}[/red]"
            )
            summary.errors += 1

        for task_id in approved:
            task = queue.get_task(task_id)
            _print_task_result(console, task)
            if task.status == TaskStatus.FAILED:
                summary.failed += 1

    if summary.executed == 0:
        console.print("No approved tasks to execute")
        console.print("Hint: run 'shellpilot tasks' to review and authorize tasks")
    else:
        line = f"\nDone: {summary.executed} tasks executed"
        if summary.failed:
            line += f" ({summary.failed} failed)"
        console.print(line)

    return summary


def _print_task_result(console: Console, task: Task) -> None:
    command = escape(task.command.command_line)
    if task.status == TaskStatus.COMPLETED:
        console.print(f"  [green]✓[/green] \\[{task.id[:8]}] {command}")
    elif task.status == TaskStatus.FAILED:
        console.print(f"  [red]✗[/red] \\[{task.id[:8]}] {command}")
        if task.result is not None and task.result.error:
            console.print(f"    Error: {escape(task.result.error)}")


def print_task_table(ctx: AppContext, show_all: bool = False) -> None:
    """Print queued tasks of every session as a table.

    Args:
        ctx: Application context
        show_all: Include tasks in every status, not just pending and executing
    """
    directory = ctx.queue_directory()
    tasks = directory.all_tasks()
    if not show_all:
        tasks = [t for t in tasks if t.status in (TaskStatus.PENDING, TaskStatus.EXECUTING)]

    if not tasks:
        ctx.console.print("No tasks waiting for authorization")
        return

    table = Table(title="Task queue")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Session")
    table.add_column("Status")
    table.add_column("Command")
    table.add_column("Warning", style="yellow")

    for task in sorted(tasks, key=lambda t: (t.session_id, t.created_at)):
        table.add_row(
            task.id[:8],
            task.session_id,
            str(task.status),
            escape(task.command.command_line),
            escape(task.check_result.warning),
        )

    ctx.console.print(table)
