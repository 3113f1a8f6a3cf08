"""Pydantic configuration models for shellpilot.

This module provides strongly-typed configuration models using Pydantic v2,
ensuring validation and type safety for the AI backend, the security policy
and command execution settings.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


class CommandLevel(str, Enum):
    """When commands require user confirmation.

    Attributes:
        ALWAYS: Every command requires confirmation
        DANGEROUS: Only commands flagged by the policy engine (default)
        NEVER: No confirmation; restricted paths are still denied
    """

    ALWAYS = "always"
    DANGEROUS = "dangerous"
    NEVER = "never"

    def __str__(self) -> str:
        """Return string representation of the level."""
        return self.value


class SecurityPolicy(BaseModel):
    """Process-wide security policy consumed by the policy engine.

    Example:
        >>> policy = SecurityPolicy(
        ...     command_level="dangerous",
        ...     restricted_paths=["~/.ssh"],
        ...     readonly_paths=["/opt/shared"],
        ... )
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )

    command_level: CommandLevel = Field(
        default=CommandLevel.DANGEROUS,
        description="When commands require confirmation (always/dangerous/never)",
    )
    restricted_paths: list[str] = Field(
        default_factory=list,
        description="Paths that may never be touched; any hit denies the command",
    )
    readonly_paths: list[str] = Field(
        default_factory=list,
        description="Paths that require authorization for write operations",
    )
    allow_shell: bool = Field(
        default=True,
        description="Allow shell features (redirects, pipes); False denies all commands",
    )
    allow_terminal_takeover: bool = Field(
        default=True,
        description="Allow multi-step operations that take over the terminal",
    )

    @field_validator("restricted_paths", "readonly_paths")
    @classmethod
    def strip_empty_paths(cls, v: list[str]) -> list[str]:
        """Drop blank entries so they cannot match every path."""
        return [p.strip() for p in v if p and p.strip()]


class AIConfig(BaseModel):
    """Chat model settings for the intent source."""

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )

    provider: str = Field(
        default="openai",
        description="LangChain model provider (openai, anthropic, google_genai, ollama)",
    )
    model: str = Field(
        default="gpt-4o",
        description="Model name/ID",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="API key (falls back to the provider's environment variable)",
    )
    base_url: str | None = Field(
        default=None,
        description="Custom API base URL",
    )
    timeout: int = Field(
        default=30,
        gt=0,
        description="Request timeout in seconds",
    )
    max_tokens: int = Field(
        default=4096,
        gt=0,
        description="Maximum tokens to generate",
    )
    temperature: float = Field(
        default=0.0,
        ge=0.0,
        le=2.0,
        description="Sampling temperature",
    )

    @field_validator("provider")
    @classmethod
    def normalize_provider(cls, v: str) -> str:
        """Lower-case the provider name and reject empty values."""
        if not v or not v.strip():
            raise ValueError("AI provider cannot be empty")
        return v.strip().lower()


class ExecutionConfig(BaseModel):
    """Settings for running commands."""

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )

    timeout: int = Field(
        default=30,
        gt=0,
        le=600,
        description="Deadline for a single command in seconds (max 10 minutes)",
    )
    max_output_lines: int = Field(
        default=20,
        gt=0,
        description="Lines of command output shown before truncating",
    )
    working_directory: str | None = Field(
        default=None,
        description="Working directory for commands (None = current directory)",
    )


class ShellpilotConfig(BaseModel):
    """Root configuration for shellpilot."""

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )

    ai: AIConfig = Field(default_factory=AIConfig)
    security: SecurityPolicy = Field(default_factory=SecurityPolicy)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    system_prompt: str | None = Field(
        default=None,
        description="Override for the intent-parsing system prompt",
    )
