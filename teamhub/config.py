# -*- coding: utf-8 -*-
"""Location: ./teamhub/config.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

teamhub Configuration.
Settings are read from environment variables (case-insensitive) and an
optional ``.env`` file in the working directory.

Examples:
    >>> s = Settings(_env_file=None, database_url="sqlite:///./x.db")
    >>> s.database_settings["connect_args"]
    {'check_same_thread': False}
    >>> s.max_teams_per_user
    5
"""

# Standard
from functools import lru_cache
from typing import Any, Dict, Literal

# Third-Party
from pydantic import Field, field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """teamhub configuration settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore")

    # Application
    app_name: str = Field(default="teamhub", description="Display name of the service")
    app_root_path: str = Field(default="", description="ASGI root path when served behind a proxy")

    # Database
    database_url: str = Field(default="sqlite:///./teamhub.db", description="SQLAlchemy database URL")
    db_pool_size: int = Field(default=20, ge=1)
    db_max_overflow: int = Field(default=10, ge=0)
    db_auto_create: bool = Field(default=True, description="Create tables on startup")

    # Redis / cluster lock backend
    cache_type: Literal["redis", "memory", "none"] = Field(default="memory", description="redis enables the cluster-wide lock store")
    redis_url: str = Field(default="redis://localhost:6379/3")
    redis_max_connections: int = Field(default=50, ge=1)
    redis_socket_timeout: float = Field(default=2.0, gt=0)
    redis_socket_connect_timeout: float = Field(default=2.0, gt=0)
    redis_retry_on_timeout: bool = True
    redis_health_check_interval: int = Field(default=30, ge=0)
    redis_decode_responses: bool = True

    lock_prefix: str = Field(default="teamhub:", description="Prefix for every lock key")
    lock_lease_seconds: int = Field(default=30, ge=1, description="Lease of a Redis lock; renewed while held")
    lock_poll_interval: float = Field(default=0.05, gt=0, description="Seconds between acquisition attempts")

    # Team rules
    team_name_max_length: int = 20
    team_description_max_length: int = 512
    team_avatar_url_max_length: int = 1024
    team_password_max_length: int = 32
    team_min_members: int = 1
    team_max_members: int = 20
    max_teams_per_user: int = 5
    max_joined_teams_per_user: int = 5
    team_create_lock_enabled: bool = Field(default=False, description="Serialize create_team per user to enforce max_teams_per_user strictly")

    # Authentication
    jwt_secret_key: SecretStr = Field(default=SecretStr("my-test-key"))
    jwt_algorithm: str = "HS256"
    jwt_audience: str = "teamhub-api"
    jwt_issuer: str = "teamhub"
    token_expiry: int = Field(default=10080, ge=0, description="Token lifetime in minutes")

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        """Upper-case and validate the log level name.

        Args:
            value: Level name from the environment.

        Returns:
            str: Upper-cased level name.

        Raises:
            ValueError: If the level is not a standard logging level.

        Examples:
            >>> Settings(_env_file=None, log_level="debug").log_level
            'DEBUG'
        """
        level = value.upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"Invalid log level: {value}")
        return level

    @property
    def database_settings(self) -> Dict[str, Any]:
        """Keyword arguments for ``sqlalchemy.create_engine``.

        Returns:
            Dict[str, Any]: Engine options appropriate for the configured backend.
        """
        if self.database_url.startswith("sqlite"):
            return {"connect_args": {"check_same_thread": False}}
        return {
            "connect_args": {},
            "pool_size": self.db_pool_size,
            "max_overflow": self.db_max_overflow,
            "pool_pre_ping": True,
        }

    @property
    def join_lock_name(self) -> str:
        """Name of the single lock that serializes every join.

        Returns:
            str: Lock key.

        Examples:
            >>> Settings(_env_file=None).join_lock_name
            'teamhub:lock:join_team'
        """
        return f"{self.lock_prefix}lock:join_team"

    def create_lock_name(self, user_id: int) -> str:
        """Name of the per-user lock used when ``team_create_lock_enabled`` is set.

        Args:
            user_id: Creating user.

        Returns:
            str: Lock key.

        Examples:
            >>> Settings(_env_file=None).create_lock_name(7)
            'teamhub:lock:create_team:7'
        """
        return f"{self.lock_prefix}lock:create_team:{user_id}"


@lru_cache()
def get_settings() -> Settings:
    """Return the cached settings instance.

    Returns:
        Settings: Process-wide settings.
    """
    return Settings()


settings = get_settings()
