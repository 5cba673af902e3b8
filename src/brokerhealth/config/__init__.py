"""Configuration loading, environment overrides and settings dataclasses."""

from ..errors import ConfigurationError
from .config_types import AgentConfig, AgentSettings, AlertSourceConfig, ElementConfig
from .duration import parse_duration
from .loader import build_config, load_config, parse_config_str
from .runtime import env_bool, env_float, env_seconds, env_str

__all__ = [
    "AgentConfig",
    "AgentSettings",
    "AlertSourceConfig",
    "ConfigurationError",
    "ElementConfig",
    "build_config",
    "env_bool",
    "env_float",
    "env_seconds",
    "env_str",
    "load_config",
    "parse_config_str",
    "parse_duration",
]
