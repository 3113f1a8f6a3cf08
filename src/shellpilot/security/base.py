"""Core value types for the policy engine."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict


class CheckResult(BaseModel):
    """Outcome of a policy check. A value type with no identity.

    Attributes:
        allowed: False means the command must not run at all
        requires_auth: True means a human has to authorize the command
        warning: Short description of what was flagged
        reason: Why the decision was made
    """

    model_config = ConfigDict(frozen=True)

    allowed: bool = True
    requires_auth: bool = False
    warning: str = ""
    reason: str = ""

    @classmethod
    def deny(cls, reason: str) -> CheckResult:
        """Build a denial. Denials never ask for authorization."""
        return cls(allowed=False, requires_auth=False, reason=reason)


@dataclass(frozen=True)
class Finding:
    """A single thing a checker flagged as dangerous."""

    warning: str
    reason: str
