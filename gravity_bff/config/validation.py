"""
Configuration validation for the Gravity BFF.
"""

from typing import List

from .settings import AppConfig

VALID_CACHE_BACKENDS = ("memory", "redis")
VALID_JWT_ALGORITHMS = ("HS256", "HS384", "HS512")


class ConfigValidator:
    """Validates configuration settings."""

    @staticmethod
    def validate_config(config: AppConfig) -> List[str]:
        """Validate the entire application configuration."""
        errors = []

        errors.extend(ConfigValidator._validate_server_config(config))
        errors.extend(ConfigValidator._validate_database_config(config))
        errors.extend(ConfigValidator._validate_cache_config(config))
        errors.extend(ConfigValidator._validate_auth_config(config))

        return errors

    @staticmethod
    def _validate_server_config(config: AppConfig) -> List[str]:
        """Validate HTTP server configuration."""
        errors = []

        if not (1 <= config.server.port <= 65535):
            errors.append(f"API port {config.server.port} is not in valid range (1-65535)")

        for origin in config.server.cors_origins:
            if origin != "*" and not origin.startswith(("http://", "https://")):
                errors.append(f"Invalid CORS origin: {origin}")

        return errors

    @staticmethod
    def _validate_database_config(config: AppConfig) -> List[str]:
        """Validate item store configuration."""
        errors = []

        if not config.database.path:
            errors.append("Database path must not be empty")

        if config.database.pool_size <= 0:
            errors.append("Database pool size must be positive")

        return errors

    @staticmethod
    def _validate_cache_config(config: AppConfig) -> List[str]:
        """Validate cache configuration."""
        errors = []

        cache_config = config.cache

        if cache_config.backend not in VALID_CACHE_BACKENDS:
            errors.append(
                f"Invalid cache backend: {cache_config.backend}. "
                f"Valid values: {', '.join(VALID_CACHE_BACKENDS)}"
            )

        if cache_config.backend == "redis":
            if not cache_config.redis_url.startswith(("redis://", "rediss://", "unix://")):
                errors.append(f"Invalid Redis URL: {cache_config.redis_url}")
            if cache_config.redis_pool_size <= 0:
                errors.append("Redis pool size must be positive")

        if cache_config.stream_ttl <= 0:
            errors.append("Stream cache TTL must be positive")

        if cache_config.item_ttl <= 0:
            errors.append("Item cache TTL must be positive")

        return errors

    @staticmethod
    def _validate_auth_config(config: AppConfig) -> List[str]:
        """Validate authentication configuration."""
        errors = []

        if config.auth.jwt_algorithm not in VALID_JWT_ALGORITHMS:
            errors.append(f"Unsupported JWT algorithm: {config.auth.jwt_algorithm}")

        if config.auth.jwt_secret is not None and len(config.auth.jwt_secret) < 16:
            errors.append("JWT secret appears to be too short")

        if not config.auth.dev_user_id:
            errors.append("Development user ID must not be empty")

        return errors


class ValidationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__("Invalid configuration: " + "; ".join(errors))
