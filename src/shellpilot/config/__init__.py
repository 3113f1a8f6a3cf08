"""Configuration module for shellpilot.

This module provides Pydantic models and utilities for managing configuration.
"""

from shellpilot.config.env import EnvSettings, load_env_config, load_env_settings
from shellpilot.config.loader import (
    deep_merge,
    find_config_file,
    get_config_dir,
    load_config,
    load_yaml_config,
    merge_configs,
)
from shellpilot.config.models import (
    AIConfig,
    CommandLevel,
    ExecutionConfig,
    SecurityPolicy,
    ShellpilotConfig,
)

__all__ = [
    "AIConfig",
    "CommandLevel",
    "EnvSettings",
    "ExecutionConfig",
    "SecurityPolicy",
    "ShellpilotConfig",
    "deep_merge",
    "find_config_file",
    "get_config_dir",
    "load_config",
    "load_env_config",
    "load_env_settings",
    "load_yaml_config",
    "merge_configs",
]
