"""Restricted and read-only path checks.

All comparisons happen on canonical paths: ``~`` is expanded, the path is made
absolute and symlinks are resolved as far as the path exists. A prefix only
matches on a path-component boundary, so ``/etc`` protects ``/etc/passwd`` but
not ``/etcetera``.
"""

from __future__ import annotations

import logging
import os
import re

from shellpilot.ai.intent import Command
from shellpilot.security.danger import command_basename

logger = logging.getLogger(__name__)

__all__ = ["WRITE_COMMANDS", "PathAccessChecker", "canonicalize", "is_under"]

WRITE_COMMANDS: frozenset[str] = frozenset(
    {"rm", "mv", "cp", "touch", "mkdir", "chmod", "chown", "tee"}
)

# Leading redirect operator glued to a path token, e.g. "2>/etc/x" or "<in"
_REDIRECT_PREFIX = re.compile(r"^[0-9]?(?:>>?>?|<)")
_SHELL_SEPARATORS = re.compile(r"[\s;|&]+")


def canonicalize(path: str) -> str:
    """Return the canonical absolute form of a path.

    Symlinks in the existing part of the path are resolved; components that
    do not exist yet are kept as written.

    Example:
        >>> canonicalize("/usr/../etc//hosts")
        '/etc/hosts'
    """
    expanded = os.path.expanduser(path)
    absolute = os.path.abspath(expanded)
    try:
        return os.path.realpath(absolute)
    except (OSError, ValueError) as e:
        logger.debug(f"Could not resolve {absolute}: {e}")
        return absolute


def is_under(path: str, prefix: str) -> bool:
    """Return True if path equals prefix or lies inside it."""
    if prefix == os.sep:
        return path.startswith(os.sep)
    prefix = prefix.rstrip(os.sep)
    return path == prefix or path.startswith(prefix + os.sep)


class PathAccessChecker:
    """Checks paths against the restricted and read-only lists.

    Example:
        >>> checker = PathAccessChecker(restricted=["/etc"], readonly=["/usr"])
        >>> checker.is_restricted("/etc/passwd")
        True
        >>> checker.is_read_only("/usr/local/bin/tool", write=True)
        True
        >>> checker.is_read_only("/usr/local/bin/tool", write=False)
        False
    """

    def __init__(
        self,
        restricted: list[str] | None = None,
        readonly: list[str] | None = None,
    ) -> None:
        self.restricted = [canonicalize(p) for p in restricted or []]
        self.readonly = [canonicalize(p) for p in readonly or []]

    def is_restricted(self, path: str) -> bool:
        """Return True if the path is inside a restricted prefix."""
        target = canonicalize(path)
        return any(is_under(target, prefix) for prefix in self.restricted)

    def is_read_only(self, path: str, write: bool) -> bool:
        """Return True if a write is attempted inside a read-only prefix."""
        if not write:
            return False
        target = canonicalize(path)
        return any(is_under(target, prefix) for prefix in self.readonly)

    @staticmethod
    def extract_paths(cmd: Command) -> list[str]:
        """Collect candidate paths from the program name and its arguments.

        A candidate is any token containing ``/`` or ``~`` that is not a flag.
        Redirect operators glued to a token are removed first, the value of a
        ``--option=/path`` flag counts as a candidate, and an argument holding
        a whole shell snippet (``sh -c "cat /etc/passwd"``) is split into words.
        """
        paths: list[str] = []
        for token in [cmd.cmd, *cmd.args]:
            for word in [token, *_SHELL_SEPARATORS.split(token)]:
                candidate = _path_candidate(word)
                if candidate and candidate not in paths:
                    paths.append(candidate)
        return paths

    @staticmethod
    def is_write_command(cmd: Command) -> bool:
        """Return True if the command modifies the filesystem."""
        if command_basename(cmd.cmd) in WRITE_COMMANDS:
            return True
        return ">" in cmd.command_line


def _path_candidate(word: str) -> str | None:
    word = _REDIRECT_PREFIX.sub("", word.strip()).strip("'\"")
    if word.startswith("-"):
        _, sep, value = word.partition("=")
        if not sep:
            return None
        word = value.strip("'\"")
    if not word or ("/" not in word and "~" not in word):
        return None
    return word
