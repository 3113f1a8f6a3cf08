"""Analysis of shell-level constructs in a command line.

Looks for output redirects into protected system locations and for path
traversal sequences. Input redirects are not inspected.
"""

from __future__ import annotations

import posixpath
import re

from shellpilot.security.base import Finding
from shellpilot.security.paths import canonicalize

__all__ = ["PROTECTED_PREFIXES", "REDIRECT_PATTERN", "ShellCommandAnalyzer"]

# Optional fd digit, the operator (>, >> or >>>) and the target word
REDIRECT_PATTERN = re.compile(r"[0-9]?(>>?>?)[ \t]*([^\s&|;]+)")

PROTECTED_PREFIXES: tuple[str, ...] = (
    "/etc/",
    "/usr/",
    "/usr/bin/",
    "/usr/sbin/",
    "/System",
    "/bin/",
    "/sbin/",
    "/boot/",
    "/lib/",
    "/lib64/",
)

_CHECKED_OPERATORS = frozenset({">", ">>"})
_DUPLICATE_SLASHES = re.compile(r"/{2,}")


def _is_protected(target: str) -> bool:
    for prefix in PROTECTED_PREFIXES:
        if target.startswith(prefix) or target == prefix.rstrip("/"):
            return True
    return False


def _normalize_target(raw: str) -> str:
    target = raw.strip("'\"")
    if target.startswith("/"):
        target = posixpath.normpath(_DUPLICATE_SLASHES.sub("/", target))
    return target


class ShellCommandAnalyzer:
    """Finds dangerous redirects and traversal in raw command text.

    Example:
        >>> analyzer = ShellCommandAnalyzer()
        >>> analyzer.dangerous_redirects("cat file >/etc/passwd")
        ['/etc/passwd']
        >>> analyzer.dangerous_redirects("echo hello >/tmp/file")
        []
    """

    def dangerous_redirects(self, text: str) -> list[str]:
        """Return redirect targets that land in a protected location.

        Targets are checked as written and after canonicalization, so a
        relative target is caught when the working directory is protected.
        """
        targets: list[str] = []
        for match in REDIRECT_PATTERN.finditer(text):
            operator, raw_target = match.group(1), match.group(2)
            if operator not in _CHECKED_OPERATORS:
                continue
            target = _normalize_target(raw_target)
            if not target or target.startswith("&"):
                continue
            if _is_protected(target) or _is_protected(canonicalize(target)):
                targets.append(target)
        return targets

    @staticmethod
    def has_path_traversal(text: str) -> bool:
        """Return True if the text contains a parent-directory sequence."""
        return "../" in text

    def analyze(self, text: str) -> list[Finding]:
        """Collect every shell-level finding for a command line."""
        findings = [
            Finding(
                warning="Dangerous shell operation detected",
                reason=f"Redirect to protected path: {target}",
            )
            for target in self.dangerous_redirects(text)
        ]
        if self.has_path_traversal(text):
            findings.append(
                Finding(
                    warning="Dangerous shell operation detected",
                    reason="Path traversal detected",
                )
            )
        return findings
