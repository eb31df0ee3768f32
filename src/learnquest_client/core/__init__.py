"""Configuration loading."""

from learnquest_client.core.config import (
    ConfigurationError,
    EnvironmentVariableError,
    MainConfig,
    load_main_config,
)

__all__ = [
    "ConfigurationError",
    "EnvironmentVariableError",
    "MainConfig",
    "load_main_config",
]
