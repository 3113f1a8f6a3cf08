"""Detection of inherently dangerous commands.

Command names are matched on their basename so ``/bin/rm`` and ``./rm`` are
treated like ``rm`` while ``rmfoo`` is not. Dangerous combinations are matched
against the reconstructed command line.
"""

from __future__ import annotations

import posixpath
import re

from shellpilot.ai.intent import Command
from shellpilot.security.base import Finding

__all__ = ["DANGEROUS_COMMANDS", "DANGEROUS_PATTERNS", "DangerousCommandChecker"]

DANGEROUS_COMMANDS: frozenset[str] = frozenset(
    {
        "rm",
        "rmdir",
        "dd",
        "mkfs",
        "format",
        "chmod",
        "chown",
        "userdel",
        "groupdel",
        "fdisk",
    }
)

# Substring matches against the full command line
DANGEROUS_PATTERNS: tuple[str, ...] = (
    "rm -rf /",
    "rm -rf .*",
    "chmod 777 /",
    "chmod 777/",  # no-space variant
)

# Output redirect into the filesystem root itself: "> /", ">/", "2>>/file"
_ROOT_REDIRECT = re.compile(r"[0-9]?>>?[ \t]*/[^/\s&|;]*(?![^\s&|;])")


def command_basename(name: str) -> str:
    """Return the program name without its directory part."""
    return posixpath.basename(name.rstrip("/")) or name


class DangerousCommandChecker:
    """Flags commands on the fixed dangerous name and pattern lists.

    Example:
        >>> checker = DangerousCommandChecker()
        >>> checker.is_dangerous(Command(cmd="/bin/rm", args=["file"]))
        True
        >>> checker.is_dangerous(Command(cmd="rmfoo"))
        False
    """

    def __init__(
        self,
        commands: frozenset[str] = DANGEROUS_COMMANDS,
        patterns: tuple[str, ...] = DANGEROUS_PATTERNS,
    ) -> None:
        self.commands = commands
        self.patterns = patterns

    def check(self, cmd: Command) -> Finding | None:
        """Return a finding if the command is dangerous, otherwise None."""
        name = command_basename(cmd.cmd)
        if name in self.commands:
            return Finding(
                warning=f"Dangerous command: {cmd.command_line}",
                reason="Command is in the dangerous list",
            )

        line = cmd.command_line
        for pattern in self.patterns:
            if pattern in line:
                return Finding(
                    warning=f"Dangerous command: {line}",
                    reason=f"Command matches dangerous pattern '{pattern}'",
                )

        if _ROOT_REDIRECT.search(line):
            return Finding(
                warning=f"Dangerous command: {line}",
                reason="Command redirects output into the filesystem root",
            )

        return None

    def is_dangerous(self, cmd: Command) -> bool:
        """Return True if the command is on the dangerous lists."""
        return self.check(cmd) is not None
