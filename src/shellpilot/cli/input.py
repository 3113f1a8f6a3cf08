"""Line input for the interactive chat loop, backed by prompt_toolkit.

History is kept in ``<config_dir>/chat_history`` so earlier requests can be
recalled with the arrow keys. Incognito sessions keep history in memory only.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.history import FileHistory, InMemoryHistory
from prompt_toolkit.styles import Style

if TYPE_CHECKING:
    from pathlib import Path

    from prompt_toolkit.history import History

logger = logging.getLogger(__name__)

HISTORY_FILE_NAME = "chat_history"

_PROMPT_STYLE = Style.from_dict({"prompt": "#5fd7ff bold"})

# Inputs that end the interactive loop
EXIT_COMMANDS = frozenset(["exit", "quit", "/exit", "/quit"])


class ChatInput:
    """Reads requests from the terminal until the user leaves.

    Example:
        >>> chat_input = ChatInput(history_file=Path("~/.shellpilot/chat_history").expanduser())
        >>> while (text := chat_input.read()) is not None:
        ...     orchestrator.process(text)
    """

    def __init__(self, history_file: Path | None = None, prompt_text: str = "› ") -> None:
        """Initialize the prompt session.

        Args:
            history_file: Persistent history file, None for in-memory history
            prompt_text: Prompt shown before each line
        """
        history: History
        if history_file is not None:
            history_file.parent.mkdir(parents=True, exist_ok=True)
            history = FileHistory(str(history_file))
            logger.debug(f"Using history file: {history_file}")
        else:
            history = InMemoryHistory()

        self.session: PromptSession[str] = PromptSession(
            message=FormattedText([("class:prompt", prompt_text)]),
            style=_PROMPT_STYLE,
            history=history,
        )

    def read(self) -> str | None:
        """Read one request.

        Returns:
            The stripped line, or None when the user wants to leave (Ctrl+D,
            Ctrl+C or an exit command). Blank lines are skipped.
        """
        while True:
            try:
                line = self.session.prompt().strip()
            except (EOFError, KeyboardInterrupt):
                logger.debug("Input closed")
                return None

            if not line:
                continue
            if line.lower() in EXIT_COMMANDS:
                return None
            return line
