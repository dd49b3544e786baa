"""
Environment variable handling for Gravity BFF configuration.
"""

import os
from typing import List

from dotenv import load_dotenv

from .settings import (
    AppConfig, AuthConfig, CacheConfig, DatabaseConfig, LogLevel, ServerConfig
)


class EnvironmentLoader:
    """Loads configuration from environment variables."""

    @staticmethod
    def load_config(dotenv: bool = True) -> AppConfig:
        """Load configuration from environment variables.

        Args:
            dotenv: Read a ``.env`` file first; real environment variables win
        """
        if dotenv:
            load_dotenv(override=False)

        server_config = ServerConfig(
            host=os.getenv('API_HOST', '0.0.0.0'),
            port=int(os.getenv('API_PORT', '8080')),
            cors_origins=EnvironmentLoader._parse_list(os.getenv('CORS_ORIGINS', '')),
        )

        database_config = DatabaseConfig(
            path=os.getenv('DB_PATH', 'data/gravity.db'),
            pool_size=int(os.getenv('DB_POOL_SIZE', '5')),
        )

        cache_config = CacheConfig(
            backend=os.getenv('CACHE_BACKEND', 'memory').lower(),
            redis_url=os.getenv('REDIS_URL', 'redis://localhost:6379/0'),
            redis_pool_size=int(os.getenv('REDIS_POOL_SIZE', '10')),
            stream_ttl=int(os.getenv('CACHE_STREAM_TTL', '120')),
            item_ttl=int(os.getenv('CACHE_ITEM_TTL', '300')),
        )

        auth_config = AuthConfig(
            jwt_secret=os.getenv('AUTH_JWT_SECRET') or None,
            jwt_algorithm=os.getenv('AUTH_JWT_ALGORITHM', 'HS256'),
            dev_user_id=os.getenv('AUTH_DEV_USER_ID', 'dev-user'),
        )

        log_level_str = os.getenv('LOG_LEVEL', 'INFO').upper()
        log_level = LogLevel.INFO
        try:
            log_level = LogLevel(log_level_str)
        except ValueError:
            pass  # Use default

        return AppConfig(
            server=server_config,
            database=database_config,
            cache=cache_config,
            auth=auth_config,
            log_level=log_level,
        )

    @staticmethod
    def _parse_list(value: str, delimiter: str = ',') -> List[str]:
        """Parse a comma-separated string into a list."""
        if not value:
            return []
        return [item.strip() for item in value.split(delimiter) if item.strip()]
