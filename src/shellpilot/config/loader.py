"""Configuration loader with YAML support and precedence handling.

This module loads, merges, and validates shellpilot configuration from
multiple sources with clear precedence rules.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from shellpilot.config.env import load_env_config
from shellpilot.config.models import ShellpilotConfig

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".shellpilot"
CONFIG_FILE_NAME = "config.yaml"


def get_config_dir() -> Path:
    """Return the shellpilot directory in the user's home (``~/.shellpilot``)."""
    return Path.home() / CONFIG_DIR_NAME


def find_config_file(config_dir: Path | None = None) -> Path | None:
    """Find the global config file.

    Args:
        config_dir: Directory to look in (defaults to ``get_config_dir()``).

    Returns:
        Path to ``config.yaml`` if it exists, otherwise None.
    """
    path = (config_dir or get_config_dir()) / CONFIG_FILE_NAME
    return path if path.exists() else None


def load_yaml_config(path: Path) -> dict[str, Any]:
    """Load and parse YAML config file.

    Args:
        path: Path to YAML config file.

    Returns:
        Parsed configuration dictionary, or empty dict if file doesn't exist.

    Raises:
        yaml.YAMLError: If YAML syntax is invalid.
        ValueError: If the file does not contain a mapping.
        OSError: If file cannot be read.
    """
    if not path or not path.exists():
        return {}

    try:
        with path.open("r", encoding="utf-8") as f:
            content = yaml.safe_load(f)
            # Handle empty files
            if content is None:
                return {}
            if not isinstance(content, dict):
                raise ValueError(
                    f"Config file must contain a YAML mapping, got {type(content).__name__}"
                )
            return content
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise OSError(f"Cannot read config file {path}: {e}") from e


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Args:
        base: Base dictionary (lower precedence).
        override: Override dictionary (higher precedence).

    Returns:
        Merged dictionary. Override values take precedence.
        Nested dicts are recursively merged.
        Lists and other values are replaced, not merged.
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """Merge multiple config dictionaries in precedence order.

    Args:
        *configs: Configuration dictionaries from lowest to highest precedence.

    Returns:
        Merged configuration dictionary.
    """
    result: dict[str, Any] = {}
    for config in configs:
        if config:
            result = deep_merge(result, config)
    return result


def load_config(
    config_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
    use_env: bool = True,
) -> ShellpilotConfig:
    """Load and merge configuration from all sources.

    Precedence order (lowest to highest):
    1. Model defaults
    2. Config file (``~/.shellpilot/config.yaml`` or ``config_path``)
    3. Environment variables (``SHELLPILOT_*``)
    4. CLI overrides

    Args:
        config_path: Optional explicit config file. If None, uses the default location.
        cli_overrides: Optional dictionary of CLI argument overrides.
        use_env: Whether to read ``SHELLPILOT_*`` environment variables.

    Returns:
        Validated ShellpilotConfig instance.

    Raises:
        yaml.YAMLError: If config file has invalid YAML syntax.
        ValidationError: If merged config doesn't match schema.
    """
    if config_path is None:
        config_path = find_config_file()

    file_config = load_yaml_config(config_path) if config_path else {}
    if config_path:
        logger.debug(f"Loaded config file: {config_path}")

    env_config = load_env_config() if use_env else {}

    merged = merge_configs(file_config, env_config, cli_overrides or {})
    return ShellpilotConfig.model_validate(merged)
