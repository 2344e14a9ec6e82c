"""
Configuration settings for the Usuarios Registry API
"""

import os
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List

logger = logging.getLogger(__name__)

TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {raw!r}")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in TRUE_VALUES


def _env_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables"""

    # Database
    db_host: str = "127.0.0.1"
    db_port: int = 5432
    db_user: str = "postgres"
    db_password: str = ""
    db_name: str = "registro"
    db_pool_min_size: int = 0
    db_pool_max_size: int = 10
    db_command_timeout: int = 60

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])

    # Raw storage error text is returned to clients as "detalle" unless disabled
    expose_error_detail: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the current environment"""
        settings = cls(
            db_host=os.getenv("DB_HOST", "127.0.0.1"),
            db_port=_env_int("DB_PORT", 5432),
            db_user=os.getenv("DB_USER", "postgres"),
            db_password=os.getenv("DB_PASS", ""),
            db_name=os.getenv("DB_NAME", "registro"),
            db_pool_min_size=_env_int("DB_POOL_MIN_SIZE", 0),
            db_pool_max_size=_env_int("DB_POOL_MAX_SIZE", 10),
            db_command_timeout=_env_int("DB_COMMAND_TIMEOUT", 60),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_env_int("PORT", 3000),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            cors_allow_origins=_env_list("CORS_ALLOW_ORIGINS", "*"),
            expose_error_detail=_env_bool("EXPOSE_ERROR_DETAIL", True),
        )

        if settings.db_pool_max_size < 1:
            raise ValueError("DB_POOL_MAX_SIZE must be at least 1")
        if settings.db_pool_min_size < 0 or settings.db_pool_min_size > settings.db_pool_max_size:
            raise ValueError("DB_POOL_MIN_SIZE must be between 0 and DB_POOL_MAX_SIZE")

        return settings

    def connection_kwargs(self) -> dict:
        """Keyword arguments for asyncpg.create_pool"""
        return {
            "host": self.db_host,
            "port": self.db_port,
            "user": self.db_user,
            "password": self.db_password or None,
            "database": self.db_name,
        }


@lru_cache
def get_settings() -> Settings:
    """Get the process-wide settings instance"""
    settings = Settings.from_env()
    logger.debug(f"Settings loaded - database: {settings.db_host}:{settings.db_port}/{settings.db_name}")
    return settings
