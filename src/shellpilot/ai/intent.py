"""Commands and intents produced by the AI backend.

An intent is the AI's answer to a natural-language request: an ordered list of
commands, a short rationale and a hint whether the plan needs confirmation.
The AI is asked to reply with JSON of the form::

    {
      "commands": [{"cmd": "ls", "args": ["-la"]}],
      "reason": "List the directory",
      "needs_confirm": false
    }
"""

from __future__ import annotations

import json
import re
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from shellpilot.ai.exceptions import IntentParseError

__all__ = [
    "Command",
    "Intent",
    "IntentSource",
    "parse_intent_response",
]

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class Command(BaseModel):
    """A single program invocation. Immutable once produced.

    Attributes:
        cmd: Program name or path
        args: Ordered arguments
        is_async: Whether authorization is deferred to the task queue
    """

    model_config = ConfigDict(frozen=True)

    cmd: str
    args: tuple[str, ...] = Field(default_factory=tuple)
    is_async: bool = False

    @property
    def command_line(self) -> str:
        """Program and arguments joined by single spaces."""
        if not self.args:
            return self.cmd
        return f"{self.cmd} {' '.join(self.args)}"

    def __str__(self) -> str:
        """Return the reconstructed command line."""
        return self.command_line


class Intent(BaseModel):
    """Parsed AI response for one user request."""

    commands: list[Command] = Field(default_factory=list)
    reason: str = ""
    needs_confirm: bool = False


@runtime_checkable
class IntentSource(Protocol):
    """Protocol for AI backends that turn text into commands."""

    def parse_intent(self, text: str, system_prompt: str = "") -> Intent:
        """Convert a request into an ordered list of commands.

        Raises:
            IntentParseError: If the backend reply cannot be understood.
        """
        ...

    def analyze_output(self, command: str, output: str) -> str:
        """Summarize what a command's output means in a sentence or two."""
        ...


def parse_intent_response(response: str) -> Intent:
    """Parse a JSON intent reply, tolerating a surrounding markdown code fence.

    Args:
        response: Raw text returned by the chat model

    Returns:
        Validated Intent

    Raises:
        IntentParseError: If the text is not valid JSON or not intent-shaped

    Example:
        >>> intent = parse_intent_response('{"commands": [{"cmd": "ls"}], "reason": "x"}')
        >>> intent.commands[0].cmd
        'ls'
    """
    text = response.strip()
    fenced = _CODE_FENCE.match(text)
    if fenced:
        text = fenced.group(1)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise IntentParseError(f"failed to parse intent: {e}", response) from e

    try:
        return Intent.model_validate(data)
    except ValidationError as e:
        raise IntentParseError(f"failed to parse intent: {e}", response) from e
