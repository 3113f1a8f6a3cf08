"""Textual screen for reviewing queued tasks.

Lists pending and executing tasks of every session. Authorizing a task
approves it and runs it on a worker thread; the table follows the task
through executing to completed or failed via ``TaskEvent`` notifications
instead of polling the queue files.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, ClassVar

from rich.text import Text
from textual import work
from textual.app import App
from textual.binding import Binding, BindingType
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import DataTable, Footer, Header, Static

from shellpilot.exceptions import ShellpilotError
from shellpilot.queue.models import TaskStatus

if TYPE_CHECKING:
    from textual.app import ComposeResult

    from shellpilot.queue.events import TaskEvent
    from shellpilot.queue.models import Task
    from shellpilot.tui.controller import TaskQueueController

logger = logging.getLogger(__name__)

__all__ = ["HelpScreen", "TaskDetailScreen", "TaskQueueApp"]

STATUS_ICONS: dict[TaskStatus, str] = {
    TaskStatus.PENDING: " ",
    TaskStatus.APPROVED: "✓",
    TaskStatus.REJECTED: "✗",
    TaskStatus.EXECUTING: "⋯",
    TaskStatus.COMPLETED: "✓",
    TaskStatus.FAILED: "!",
}

STATUS_STYLES: dict[TaskStatus, str] = {
    TaskStatus.PENDING: "yellow",
    TaskStatus.APPROVED: "cyan",
    TaskStatus.REJECTED: "dim",
    TaskStatus.EXECUTING: "bold cyan",
    TaskStatus.COMPLETED: "green",
    TaskStatus.FAILED: "bold red",
}

HELP_TEXT = """\
j / ↓      next task
k / ↑      previous task
g g / G    first / last task
a          authorize and run the selected task
r          reject the selected task
A / R      authorize / reject every pending task
enter      show task details
?          show this help
q / esc    quit"""

_MAX_COMMAND_WIDTH = 50


def _truncate(text: str, width: int = _MAX_COMMAND_WIDTH) -> str:
    if len(text) > width:
        return text[: width - 3] + "..."
    return text


class HelpScreen(ModalScreen[None]):
    """Key binding reference."""

    DEFAULT_CSS = """
    HelpScreen {
        align: center middle;
    }

    HelpScreen > Vertical {
        width: 60;
        height: auto;
        background: $panel;
        border: thick $primary;
        padding: 1 2;
    }

    HelpScreen .modal-title {
        width: 100%;
        text-style: bold;
        text-align: center;
        margin: 0 0 1 0;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("escape,q,enter,question_mark", "close", "Close", show=True),
    ]

    def compose(self) -> ComposeResult:
        """Compose the help dialog."""
        with Vertical():
            yield Static("Task queue keys", classes="modal-title")
            yield Static(HELP_TEXT, id="help-text")

    def action_close(self) -> None:
        """Close the dialog."""
        self.dismiss(None)


class TaskDetailScreen(ModalScreen[None]):
    """Full details of one task, including its policy warning and result."""

    DEFAULT_CSS = """
    TaskDetailScreen {
        align: center middle;
    }

    TaskDetailScreen > Vertical {
        width: 100;
        height: auto;
        max-height: 90%;
        background: $panel;
        border: thick $primary;
        padding: 1 2;
    }

    TaskDetailScreen .modal-title {
        width: 100%;
        text-style: bold;
        text-align: center;
        margin: 0 0 1 0;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("escape,q,enter", "close", "Close", show=True),
    ]

    def __init__(self, task: Task) -> None:
        super().__init__()
        self.queued_task = task

    def compose(self) -> ComposeResult:
        """Compose the detail dialog."""
        task = self.queued_task
        lines = [
            f"ID:       {task.id}",
            f"Session:  {task.session_id}",
            f"Status:   {task.status}",
            f"Command:  {task.command.command_line}",
            f"Created:  {task.created_at:%Y-%m-%d %H:%M:%S}",
        ]
        if task.check_result.warning:
            lines.append(f"Warning:  {task.check_result.warning}")
        if task.check_result.reason:
            lines.append(f"Reason:   {task.check_result.reason}")
        if task.result is not None:
            lines.append(f"Exit:     {task.result.exit_code}")
            if task.result.error:
                lines.append(f"Error:    {task.result.error}")
            if task.result.output:
                lines.extend(["", task.result.output])

        with Vertical():
            yield Static("Task details", classes="modal-title")
            yield Static(Text("\n".join(lines)), id="task-details")

    def action_close(self) -> None:
        """Close the dialog."""
        self.dismiss(None)


class TaskQueueApp(App[None]):
    """Review screen for tasks waiting for authorization."""

    TITLE = "shellpilot tasks"

    DEFAULT_CSS = """
    TaskQueueApp DataTable {
        height: 1fr;
    }

    TaskQueueApp #status-line {
        height: 1;
        padding: 0 1;
        color: $text 70%;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("a", "authorize", "Authorize", show=True),
        Binding("r", "reject", "Reject", show=True),
        Binding("A", "authorize_all", "Authorize all", show=True),
        Binding("R", "reject_all", "Reject all", show=True),
        Binding("j", "cursor_down", "Down", show=False),
        Binding("k", "cursor_up", "Up", show=False),
        Binding("g", "goto_top", "Top", show=False),
        Binding("G", "goto_bottom", "Bottom", show=False),
        Binding("question_mark", "help", "Help", show=True),
        Binding("q,escape", "quit", "Quit", show=True),
    ]

    def __init__(self, controller: TaskQueueController) -> None:
        """Initialize the app.

        Args:
            controller: Queue operations; its event bus drives row updates
        """
        super().__init__()
        self.controller = controller
        self._touched: set[str] = set()
        self._pending_g = False

    def compose(self) -> ComposeResult:
        """Compose the table layout."""
        yield Header()
        table: DataTable[str | Text] = DataTable(
            id="task-table", zebra_stripes=True, cursor_type="row"
        )
        yield table
        yield Static("", id="status-line")
        yield Footer()

    def on_mount(self) -> None:
        """Populate the table and start listening for task events."""
        table = self.query_one("#task-table", DataTable)
        table.add_column("", key="icon")
        table.add_column("Session", key="session")
        table.add_column("Status", key="status")
        table.add_column("Command", key="command")
        table.add_column("Warning", key="warning")

        self.controller.events.subscribe(self._on_task_event)
        self.refresh_tasks()
        table.focus()

    def on_unmount(self) -> None:
        """Stop listening for task events."""
        self.controller.events.unsubscribe(self._on_task_event)

    @property
    def selected_task_id(self) -> str | None:
        """ID of the task under the cursor."""
        table = self.query_one("#task-table", DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return str(row_key.value)

    def refresh_tasks(self) -> None:
        """Rebuild the table, keeping the cursor on the same task when possible."""
        table = self.query_one("#task-table", DataTable)
        selected = self.selected_task_id
        tasks = self.controller.visible_tasks(include=self._touched)

        table.clear()
        for task in tasks:
            style = STATUS_STYLES.get(task.status, "")
            table.add_row(
                STATUS_ICONS.get(task.status, "?"),
                task.session_id,
                Text(str(task.status), style=style),
                _truncate(task.command.command_line),
                task.check_result.warning,
                key=task.id,
            )

        ids = [task.id for task in tasks]
        if selected in ids:
            table.move_cursor(row=ids.index(selected))

        pending = sum(1 for task in tasks if task.status == TaskStatus.PENDING)
        if not tasks:
            self._set_status("No tasks waiting for authorization")
        else:
            self._set_status(f"{pending} pending of {len(tasks)} listed")

    def action_cursor_down(self) -> None:
        """Move to the next task."""
        self._pending_g = False
        self.query_one("#task-table", DataTable).action_cursor_down()

    def action_cursor_up(self) -> None:
        """Move to the previous task."""
        self._pending_g = False
        self.query_one("#task-table", DataTable).action_cursor_up()

    def action_goto_top(self) -> None:
        """Jump to the first task on the second consecutive ``g``."""
        if self._pending_g:
            self.query_one("#task-table", DataTable).move_cursor(row=0)
        self._pending_g = not self._pending_g

    def action_goto_bottom(self) -> None:
        """Jump to the last task."""
        self._pending_g = False
        table = self.query_one("#task-table", DataTable)
        if table.row_count:
            table.move_cursor(row=table.row_count - 1)

    def action_authorize(self) -> None:
        """Authorize and run the selected task."""
        self._pending_g = False
        task_id = self.selected_task_id
        if task_id is not None:
            self._touched.add(task_id)
            self.authorize_tasks([task_id])

    def action_reject(self) -> None:
        """Reject the selected task."""
        self._pending_g = False
        task_id = self.selected_task_id
        if task_id is not None:
            self._touched.add(task_id)
            self.reject_tasks([task_id])

    def action_authorize_all(self) -> None:
        """Authorize and run every pending task, one after another."""
        self._pending_g = False
        ids = self._pending_ids()
        if ids:
            self._touched.update(ids)
            self.authorize_tasks(ids)

    def action_reject_all(self) -> None:
        """Reject every pending task."""
        self._pending_g = False
        ids = self._pending_ids()
        if ids:
            self._touched.update(ids)
            self.reject_tasks(ids)

    def action_help(self) -> None:
        """Show the key reference."""
        self.push_screen(HelpScreen())

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        """Show details of the task under the cursor (Enter)."""
        task_id = str(event.row_key.value)
        try:
            task = self.controller.get_task(task_id)
        except ShellpilotError as e:
            self._set_status(f"Error: {e}")
            return
        self.push_screen(TaskDetailScreen(task))

    @work(thread=True)
    def authorize_tasks(self, task_ids: list[str]) -> None:
        """Approve and execute tasks off the UI thread."""
        for task_id in task_ids:
            try:
                result = self.controller.authorize(task_id)
            except ShellpilotError as e:
                logger.warning(f"Could not authorize task {task_id}: {e}")
                self.call_from_thread(self._set_status, f"Error: {e}")
                continue
            outcome = "completed" if result.succeeded else f"failed ({result.error})"
            self.call_from_thread(self._set_status, f"Task {task_id[:8]} {outcome}")

    @work(thread=True)
    def reject_tasks(self, task_ids: list[str]) -> None:
        """Reject tasks off the UI thread."""
        for task_id in task_ids:
            try:
                self.controller.reject(task_id)
            except ShellpilotError as e:
                logger.warning(f"Could not reject task {task_id}: {e}")
                self.call_from_thread(self._set_status, f"Error: {e}")

    def _pending_ids(self) -> list[str]:
        return [
            task.id
            for task in self.controller.visible_tasks()
            if task.status == TaskStatus.PENDING
        ]

    def _on_task_event(self, event: TaskEvent) -> None:
        # Published from worker threads
        self.call_from_thread(self.refresh_tasks)

    def _set_status(self, message: str) -> None:
        self.query_one("#status-line", Static).update(message)
