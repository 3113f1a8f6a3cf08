"""Tests for configuration models."""

import pytest
from pydantic import ValidationError

from shellpilot.config.models import (
    AIConfig,
    CommandLevel,
    ExecutionConfig,
    SecurityPolicy,
    ShellpilotConfig,
)


class TestSecurityPolicy:
    """Tests for SecurityPolicy model."""

    def test_defaults(self):
        """Test the default policy."""
        policy = SecurityPolicy()
        assert policy.command_level == CommandLevel.DANGEROUS
        assert policy.restricted_paths == []
        assert policy.readonly_paths == []
        assert policy.allow_shell is True
        assert policy.allow_terminal_takeover is True

    def test_command_level_from_string(self):
        """Test levels are accepted by value."""
        assert SecurityPolicy(command_level="never").command_level == CommandLevel.NEVER

    def test_invalid_command_level(self):
        """Test unknown levels are rejected."""
        with pytest.raises(ValidationError):
            SecurityPolicy(command_level="sometimes")

    def test_blank_paths_dropped(self):
        """Test blank entries cannot restrict everything."""
        policy = SecurityPolicy(restricted_paths=["", "  ", " /etc "], readonly_paths=[""])
        assert policy.restricted_paths == ["/etc"]
        assert policy.readonly_paths == []

    def test_extra_fields_forbidden(self):
        """Test unknown keys are rejected."""
        with pytest.raises(ValidationError):
            SecurityPolicy(restricted=["/etc"])


class TestAIConfig:
    """Tests for AIConfig model."""

    def test_provider_normalized(self):
        """Test provider names are lower-cased and trimmed."""
        assert AIConfig(provider=" Anthropic ").provider == "anthropic"

    def test_empty_provider_rejected(self):
        """Test an empty provider is invalid."""
        with pytest.raises(ValidationError):
            AIConfig(provider=" ")

    def test_api_key_hidden(self):
        """Test the API key is not printed."""
        config = AIConfig(api_key="sk-secret")
        assert "sk-secret" not in repr(config)
        assert config.api_key is not None
        assert config.api_key.get_secret_value() == "sk-secret"

    @pytest.mark.parametrize("temperature", [-0.1, 2.5])
    def test_temperature_bounds(self, temperature: float):
        """Test temperature must lie in [0, 2]."""
        with pytest.raises(ValidationError):
            AIConfig(temperature=temperature)


class TestExecutionConfig:
    """Tests for ExecutionConfig model."""

    @pytest.mark.parametrize("timeout", [0, -1, 601])
    def test_timeout_bounds(self, timeout: int):
        """Test the deadline must be positive and at most ten minutes."""
        with pytest.raises(ValidationError):
            ExecutionConfig(timeout=timeout)

    def test_max_output_lines_positive(self):
        """Test at least one output line is shown."""
        with pytest.raises(ValidationError):
            ExecutionConfig(max_output_lines=0)


class TestShellpilotConfig:
    """Tests for the root config."""

    def test_nested_from_dict(self):
        """Test sections validate from plain dicts."""
        config = ShellpilotConfig.model_validate(
            {
                "ai": {"model": "claude-sonnet-4-5", "provider": "anthropic"},
                "security": {"readonly_paths": ["/opt"]},
                "system_prompt": "Be terse.",
            }
        )
        assert config.ai.provider == "anthropic"
        assert config.security.readonly_paths == ["/opt"]
        assert config.system_prompt == "Be terse."

    def test_validate_assignment(self):
        """Test assignments are validated."""
        config = ShellpilotConfig()
        with pytest.raises(ValidationError):
            config.execution.timeout = 0
