"""Custom exceptions for the AI backend.

This module defines exception classes for chat model initialization and for
replies that cannot be turned into commands.
"""

from __future__ import annotations


class ProviderInitializationError(Exception):
    """Base exception for AI provider initialization errors.

    Raised when the chat model cannot be created, for example because the
    provider package is missing or the configuration is invalid.
    """


class MissingAPIKeyError(ProviderInitializationError):
    """Exception raised when required API key is not found.

    This error indicates that the API key for the selected provider
    is missing from both the config file and the environment.
    """


class IntentParseError(Exception):
    """Exception raised when an AI reply is not a valid intent.

    Attributes:
        raw_response: The text the model returned, for debugging.
    """

    def __init__(self, message: str, raw_response: str = ""):
        """Initialize IntentParseError with message and raw reply.

        Args:
            message: Error description.
            raw_response: Text returned by the model.
        """
        super().__init__(message)
        self.raw_response = raw_response
