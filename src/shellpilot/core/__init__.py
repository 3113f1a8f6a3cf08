"""Request orchestration."""

from shellpilot.core.orchestrator import (
    CommandOutcome,
    ConfirmDecision,
    Confirmer,
    Disposition,
    Orchestrator,
    parse_async_syntax,
    strip_async_syntax,
    truncate_output,
)

__all__ = [
    "CommandOutcome",
    "ConfirmDecision",
    "Confirmer",
    "Disposition",
    "Orchestrator",
    "parse_async_syntax",
    "strip_async_syntax",
    "truncate_output",
]
