"""LangChain-backed intent source.

Builds a chat model from ``AIConfig`` with ``init_chat_model`` and uses it to
turn requests into commands and to summarize command output.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

from langchain.chat_models import init_chat_model
from langchain_core.messages import HumanMessage, SystemMessage

from shellpilot.ai.exceptions import (
    IntentParseError,
    MissingAPIKeyError,
    ProviderInitializationError,
)
from shellpilot.ai.intent import Intent, parse_intent_response

if TYPE_CHECKING:
    from langchain_core.language_models.chat_models import BaseChatModel

    from shellpilot.config.models import AIConfig

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = """You are shellpilot, a terminal AI assistant. Your job is to understand user requests and convert them into shell commands.

Rules:
1. Return ONLY valid JSON
2. For simple requests, return a single command
3. Explain your reasoning in the "reason" field
4. Mark dangerous commands (rm, chmod, etc.) with needs_confirm: true

Response format:
{
  "commands": [{"cmd": "command", "args": ["arg1", "arg2"]}],
  "reason": "explanation",
  "needs_confirm": false
}"""

ANALYSIS_SYSTEM_PROMPT = "You are a helpful assistant. Be brief and clear."

# Environment variables consulted when no api_key is configured
PROVIDER_API_KEY_ENV: dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "google_genai": "GOOGLE_API_KEY",
}


def get_chat_model(ai_config: AIConfig) -> BaseChatModel:
    """Initialize a chat model from configuration.

    Args:
        ai_config: Provider, model and request settings

    Returns:
        Initialized LangChain chat model.

    Raises:
        MissingAPIKeyError: If the provider needs a key and none is configured.
        ProviderInitializationError: If the provider package is missing or the
            model cannot be created.
    """
    params: dict[str, Any] = {
        "temperature": ai_config.temperature,
        "max_tokens": ai_config.max_tokens,
        "timeout": ai_config.timeout,
    }

    if ai_config.api_key is not None:
        params["api_key"] = ai_config.api_key.get_secret_value()
    else:
        env_var = PROVIDER_API_KEY_ENV.get(ai_config.provider)
        if env_var and not os.environ.get(env_var):
            raise MissingAPIKeyError(
                f"API key for {ai_config.provider} not configured.\n\n"
                f"Set ai.api_key in ~/.shellpilot/config.yaml or export {env_var}."
            )

    if ai_config.base_url:
        params["base_url"] = ai_config.base_url

    try:
        return init_chat_model(
            ai_config.model,
            model_provider=ai_config.provider,
            **params,
        )
    except ImportError as e:
        raise ProviderInitializationError(
            f"Provider package for '{ai_config.provider}' is not installed: {e}\n\n"
            f"Install with: pip install langchain-{ai_config.provider.split('_')[0]}"
        ) from e
    except ValueError as e:
        raise ProviderInitializationError(
            f"Invalid model '{ai_config.model}' for {ai_config.provider}: {e}"
        ) from e


def _message_text(content: Any) -> str:
    """Flatten a message content payload (string or content blocks) to text."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(str(block.get("text", "")))
    return "".join(parts)


class ChatModelIntentSource:
    """Intent source that asks a LangChain chat model for JSON plans.

    Example:
        >>> source = ChatModelIntentSource(get_chat_model(config.ai))
        >>> intent = source.parse_intent("list files in /tmp")
        >>> [c.command_line for c in intent.commands]
        ['ls /tmp']
    """

    def __init__(self, chat_model: BaseChatModel) -> None:
        """Initialize with an already-configured chat model.

        Args:
            chat_model: Any LangChain chat model
        """
        self.chat_model = chat_model

    def parse_intent(self, text: str, system_prompt: str = "") -> Intent:
        """Ask the model to convert a request into commands.

        Raises:
            IntentParseError: If the reply is not a valid JSON intent.
        """
        prompt = (
            f"User request: {text}\n\n"
            "Convert this to shell commands. Return JSON only."
        )
        response = self.chat_model.invoke(
            [
                SystemMessage(content=system_prompt or DEFAULT_SYSTEM_PROMPT),
                HumanMessage(content=prompt),
            ]
        )
        raw = _message_text(response.content)
        logger.debug(f"Intent reply: {raw[:200]}")

        intent = parse_intent_response(raw)
        if not intent.commands and not intent.reason:
            raise IntentParseError("AI returned an empty plan", raw)
        return intent

    def analyze_output(self, command: str, output: str) -> str:
        """Ask the model for a short explanation of a command's output."""
        prompt = (
            f"Command: {command}\nOutput:\n{output}\n\n"
            "Briefly explain what happened (max 2 sentences)."
        )
        response = self.chat_model.invoke(
            [
                SystemMessage(content=ANALYSIS_SYSTEM_PROMPT),
                HumanMessage(content=prompt),
            ]
        )
        return _message_text(response.content).strip()
