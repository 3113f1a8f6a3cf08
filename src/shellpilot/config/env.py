"""Environment variable settings for shellpilot.

Reads ``SHELLPILOT_*`` variables (and a ``.env`` file in the working
directory) and converts them into a config dictionary that the loader merges
above the YAML file.

Environment Variables:
    SHELLPILOT_AI_PROVIDER: LangChain provider name
    SHELLPILOT_AI_MODEL: Model name
    SHELLPILOT_AI_API_KEY: API key
    SHELLPILOT_AI_BASE_URL: Custom API base URL
    SHELLPILOT_COMMAND_LEVEL: always / dangerous / never
    SHELLPILOT_ALLOW_SHELL: true / false
    SHELLPILOT_EXECUTION_TIMEOUT: Command deadline in seconds
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvSettings(BaseSettings):
    """Settings sourced from the environment."""

    model_config = SettingsConfigDict(
        env_prefix="SHELLPILOT_",
        env_file=".env",
        extra="ignore",
    )

    ai_provider: str | None = Field(default=None)
    ai_model: str | None = Field(default=None)
    ai_api_key: SecretStr | None = Field(default=None)
    ai_base_url: str | None = Field(default=None)
    command_level: str | None = Field(default=None)
    allow_shell: bool | None = Field(default=None)
    execution_timeout: int | None = Field(default=None)


def load_env_settings() -> EnvSettings:
    """Load settings from the environment and ``.env`` file."""
    return EnvSettings()


def load_env_config(env_settings: EnvSettings | None = None) -> dict[str, Any]:
    """Convert environment settings into a config dict for merging.

    Args:
        env_settings: Optional EnvSettings instance. If None, loads fresh settings.

    Returns:
        Nested configuration dictionary containing only the values that are set.
    """
    if env_settings is None:
        env_settings = load_env_settings()

    ai: dict[str, Any] = {}
    if env_settings.ai_provider:
        ai["provider"] = env_settings.ai_provider
    if env_settings.ai_model:
        ai["model"] = env_settings.ai_model
    if env_settings.ai_api_key is not None:
        ai["api_key"] = env_settings.ai_api_key.get_secret_value()
    if env_settings.ai_base_url:
        ai["base_url"] = env_settings.ai_base_url

    security: dict[str, Any] = {}
    if env_settings.command_level:
        security["command_level"] = env_settings.command_level
    if env_settings.allow_shell is not None:
        security["allow_shell"] = env_settings.allow_shell

    execution: dict[str, Any] = {}
    if env_settings.execution_timeout is not None:
        execution["timeout"] = env_settings.execution_timeout

    env_config: dict[str, Any] = {}
    if ai:
        env_config["ai"] = ai
    if security:
        env_config["security"] = security
    if execution:
        env_config["execution"] = execution
    return env_config
