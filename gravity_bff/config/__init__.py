"""
Configuration management for the Gravity BFF.
"""

from .settings import (
    AppConfig, ServerConfig, DatabaseConfig, CacheConfig, AuthConfig, LogLevel
)
from .environment import EnvironmentLoader
from .validation import ConfigValidator, ValidationError


def load_config() -> AppConfig:
    """Load configuration from the environment and validate it.

    Raises:
        ValidationError: If the configuration is invalid
    """
    config = EnvironmentLoader.load_config()
    errors = ConfigValidator.validate_config(config)
    if errors:
        raise ValidationError(errors)
    return config


__all__ = [
    'AppConfig',
    'ServerConfig',
    'DatabaseConfig',
    'CacheConfig',
    'AuthConfig',
    'LogLevel',
    'EnvironmentLoader',
    'ConfigValidator',
    'ValidationError',
    'load_config',
]
