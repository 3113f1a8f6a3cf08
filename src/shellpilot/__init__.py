"""shellpilot - natural-language terminal assistant with command authorization.

Turns requests into shell commands, classifies every command against a
security policy and tracks deferred commands through a persistent
approval/execution queue.

Quick Start:
    >>> from shellpilot.config.models import SecurityPolicy
    >>> from shellpilot.security import PolicyEngine
    >>> from shellpilot.ai.intent import Command
    >>> engine = PolicyEngine(SecurityPolicy())
    >>> engine.check_command(Command(cmd="rm", args=["-rf", "/tmp/x"])).requires_auth
    True
"""

import logging

__version__ = "0.1.0"
__license__ = "Apache-2.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "__license__",
    "__version__",
]
