"""
Configuration settings for the Gravity BFF.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class LogLevel(str, Enum):
    """Log levels accepted by LOG_LEVEL."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class ServerConfig:
    """HTTP server configuration."""
    host: str = "0.0.0.0"
    port: int = 8080
    cors_origins: List[str] = field(default_factory=list)


@dataclass
class DatabaseConfig:
    """Item store configuration."""
    path: str = "data/gravity.db"
    pool_size: int = 5


@dataclass
class CacheConfig:
    """Cache configuration. TTLs are in seconds."""
    backend: str = "memory"
    redis_url: str = "redis://localhost:6379/0"
    redis_pool_size: int = 10
    stream_ttl: int = 120
    item_ttl: int = 300


@dataclass
class AuthConfig:
    """Bearer token verification settings.

    Without a JWT secret the service runs in development mode and every
    request is attributed to ``dev_user_id``.
    """
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    dev_user_id: str = "dev-user"

    @property
    def development_mode(self) -> bool:
        return not self.jwt_secret


@dataclass
class AppConfig:
    """Top-level application configuration."""
    server: ServerConfig = field(default_factory=ServerConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    log_level: LogLevel = LogLevel.INFO
