"""Security policy evaluation for AI-proposed commands."""

from shellpilot.security.base import CheckResult, Finding
from shellpilot.security.danger import (
    DANGEROUS_COMMANDS,
    DANGEROUS_PATTERNS,
    DangerousCommandChecker,
)
from shellpilot.security.engine import PolicyEngine
from shellpilot.security.paths import PathAccessChecker, canonicalize, is_under
from shellpilot.security.shell import PROTECTED_PREFIXES, ShellCommandAnalyzer

__all__ = [
    "DANGEROUS_COMMANDS",
    "DANGEROUS_PATTERNS",
    "PROTECTED_PREFIXES",
    "CheckResult",
    "DangerousCommandChecker",
    "Finding",
    "PathAccessChecker",
    "PolicyEngine",
    "ShellCommandAnalyzer",
    "canonicalize",
    "is_under",
]
