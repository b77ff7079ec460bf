"""Application configuration."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from exceptions import ConfigurationError

DB_FILENAME = "ncore_stats.db"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    `.env.local` is read before `.env`; real environment variables win over both.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # nCore credentials (required)
    ncore_nick: str = Field(validation_alias="NICK", min_length=1)
    ncore_pass: str = Field(validation_alias="PASS", min_length=1)

    # Server
    server_host: str = "0.0.0.0"
    server_port: int = 3000

    # Storage
    database_path: str = "./data"

    # Logging
    log_level: str = "info"

    # Fetcher
    fetch_interval_hours: float = 24
    fetch_pause_seconds: float = 2
    request_timeout: float = 30
    shutdown_grace_seconds: float = 5

    # Dashboard
    web_dir: str = "web"

    @field_validator("server_port", mode="before")
    @classmethod
    def strip_port_colon(cls, v: Any) -> Any:
        # Accept Go-style ":3000" as well as "3000"
        if isinstance(v, str):
            return v.strip().lstrip(":")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> str:
        level = str(v or "info").strip().lower()
        if level not in {"debug", "info", "warn", "warning", "error"}:
            return "info"
        return level

    @property
    def database_file(self) -> Path:
        return Path(self.database_path) / DB_FILENAME

    @property
    def database_url(self) -> str:
        return f"sqlite+aiosqlite:///{self.database_file}"


def load_settings(**overrides: Any) -> Settings:
    """Build settings, turning validation problems into a ConfigurationError."""
    try:
        return Settings(**overrides)
    except ValidationError as e:
        missing = sorted(
            str(err["loc"][0]) for err in e.errors() if err.get("loc")
        )
        raise ConfigurationError(
            f"Invalid or missing configuration: {', '.join(missing) or e}"
        ) from e


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return load_settings()


LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def setup_logging(level: str = "info") -> None:
    """Configure root logging once with timestamped text output."""
    logging.basicConfig(
        level=LOG_LEVELS.get(level, logging.INFO),
        format="%(asctime)s %(levelname)-7s [%(name)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )
    logging.getLogger().setLevel(LOG_LEVELS.get(level, logging.INFO))
