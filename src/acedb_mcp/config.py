"""Connection settings loaded from the environment or a ``.env`` file."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .session import DEFAULT_PASSWORD, DEFAULT_USER
from .transport.tcp_connection import DEFAULT_HOST, DEFAULT_PORT

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(Exception):
    """Raised when configuration values are invalid."""


@dataclass
class Settings:
    """Where to connect and how to log in."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    user: str = DEFAULT_USER
    password: str = DEFAULT_PASSWORD
    log_level: str = "INFO"


SETTINGS = Settings()


def load_settings(env_path: str = ".env", settings: Settings | None = None) -> Settings:
    """Fill ``settings`` (the module-wide SETTINGS by default) from ACEDB_* variables."""
    if Path(env_path).exists():
        load_dotenv(env_path)

    settings = settings if settings is not None else SETTINGS
    settings.host = os.getenv("ACEDB_HOST", settings.host)
    settings.user = os.getenv("ACEDB_USER", settings.user)
    settings.password = os.getenv("ACEDB_PASSWORD", settings.password)
    settings.log_level = os.getenv("ACEDB_LOG_LEVEL", settings.log_level).upper()

    port = os.getenv("ACEDB_PORT")
    if port is not None:
        try:
            settings.port = int(port)
        except ValueError as exc:
            raise ConfigError(f"ACEDB_PORT must be an integer, got {port!r}") from exc

    if not 1 <= settings.port <= 65535:
        raise ConfigError(f"Port must be between 1 and 65535, got {settings.port}")
    if settings.log_level not in LOG_LEVELS:
        raise ConfigError(f"Unknown log level {settings.log_level!r}")
    return settings
