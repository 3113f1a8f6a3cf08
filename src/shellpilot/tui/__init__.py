"""Task queue review screen built on Textual.

Imported lazily by the ``tasks`` command so plain chat invocations do not pay
for loading Textual.
"""

from __future__ import annotations

from shellpilot.tui.app import TaskQueueApp
from shellpilot.tui.controller import TaskQueueController

__all__ = ["TaskQueueApp", "TaskQueueController"]
