"""Policy engine deciding whether a command may run.

Every command goes through three checks in order:

1. Dangerous command names and patterns
2. Restricted and read-only paths referenced by the command
3. Shell-level constructs (redirects, traversal)

A restricted path denies the command outright, whatever the command level.
Every other finding is collected and the combined result asks for
authorization unless the command level is ``never``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from shellpilot.config.models import CommandLevel, SecurityPolicy
from shellpilot.security.base import CheckResult, Finding
from shellpilot.security.danger import DangerousCommandChecker
from shellpilot.security.paths import PathAccessChecker
from shellpilot.security.shell import ShellCommandAnalyzer

if TYPE_CHECKING:
    from shellpilot.ai.intent import Command

logger = logging.getLogger(__name__)

__all__ = ["PolicyEngine"]

SHELL_DISABLED_REASON = "Shell commands are disabled by policy (allow_shell=false)"
ALWAYS_CONFIRM_REASON = "Every command requires confirmation (command_level=always)"


class PolicyEngine:
    """Evaluates commands against a SecurityPolicy.

    The engine is stateless apart from its policy and safe to share between
    threads.

    Example:
        >>> engine = PolicyEngine(SecurityPolicy(restricted_paths=["/etc"]))
        >>> engine.check_command(Command(cmd="cat", args=["/etc/passwd"])).allowed
        False
        >>> engine.check_command(Command(cmd="rm", args=["file"])).requires_auth
        True
    """

    def __init__(self, policy: SecurityPolicy | None = None) -> None:
        """Initialize the engine.

        Args:
            policy: Security policy, defaults to ``SecurityPolicy()``
        """
        self.policy = policy or SecurityPolicy()
        self.danger_checker = DangerousCommandChecker()
        self.path_checker = PathAccessChecker(
            restricted=self.policy.restricted_paths,
            readonly=self.policy.readonly_paths,
        )
        self.shell_analyzer = ShellCommandAnalyzer()

    def check_command(self, cmd: Command) -> CheckResult:
        """Decide whether a command is allowed and whether it needs authorization.

        Args:
            cmd: Command to evaluate

        Returns:
            Combined CheckResult for all checks
        """
        findings: list[Finding] = []

        danger = self.danger_checker.check(cmd)
        if danger is not None:
            findings.append(danger)

        write = self.path_checker.is_write_command(cmd)
        for path in self.path_checker.extract_paths(cmd):
            if self.path_checker.is_restricted(path):
                logger.info(f"Denied '{cmd.command_line}': {path} is restricted")
                return CheckResult.deny(f"Access denied: {path} is restricted")
            if self.path_checker.is_read_only(path, write):
                findings.append(
                    Finding(
                        warning=f"Write to read-only path: {path}",
                        reason=f"{path} is read-only",
                    )
                )

        if not self.policy.allow_shell:
            logger.info(f"Denied '{cmd.command_line}': shell disabled")
            return CheckResult.deny(SHELL_DISABLED_REASON)
        findings.extend(self.shell_analyzer.analyze(cmd.command_line))

        return self._decide(findings)

    def check_path_access(self, path: str, write: bool = False) -> CheckResult:
        """Check a single path against the restricted and read-only lists."""
        if self.path_checker.is_restricted(path):
            return CheckResult.deny(f"Access denied: {path} is restricted")
        if self.path_checker.is_read_only(path, write):
            return self._decide(
                [
                    Finding(
                        warning=f"Write to read-only path: {path}",
                        reason=f"{path} is read-only",
                    )
                ]
            )
        return self._decide([])

    def analyze_shell_command(self, text: str) -> CheckResult:
        """Check raw command text for dangerous shell constructs."""
        if not self.policy.allow_shell:
            return CheckResult.deny(SHELL_DISABLED_REASON)
        return self._decide(self.shell_analyzer.analyze(text))

    def _decide(self, findings: list[Finding]) -> CheckResult:
        level = self.policy.command_level

        if not findings:
            if level == CommandLevel.ALWAYS:
                return CheckResult(requires_auth=True, reason=ALWAYS_CONFIRM_REASON)
            return CheckResult()

        warning = "; ".join(dict.fromkeys(f.warning for f in findings))
        reason = "; ".join(dict.fromkeys(f.reason for f in findings))
        logger.debug(f"Policy findings: {reason}")
        return CheckResult(
            allowed=True,
            requires_auth=level != CommandLevel.NEVER,
            warning=warning,
            reason=reason,
        )
