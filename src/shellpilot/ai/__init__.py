"""AI backend boundary: command/intent models and the LangChain intent source."""

from shellpilot.ai.exceptions import (
    IntentParseError,
    MissingAPIKeyError,
    ProviderInitializationError,
)
from shellpilot.ai.intent import Command, Intent, IntentSource, parse_intent_response

__all__ = [
    "Command",
    "Intent",
    "IntentParseError",
    "IntentSource",
    "MissingAPIKeyError",
    "ProviderInitializationError",
    "parse_intent_response",
]
