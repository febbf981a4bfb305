"""Application configuration primitives."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def _load_env(dotenv_path: Optional[Path] = None) -> None:
    """Load the .env file once for the process."""

    if getattr(_load_env, "_loaded", False):  # type: ignore[attr-defined]
        return

    load_dotenv(dotenv_path)
    setattr(_load_env, "_loaded", True)  # type: ignore[attr-defined]


def _flag(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class DatabaseSettings:
    """Configuration for the relational database."""

    driver: str = "mysql+pymysql"
    user: str = "ledger"
    password: str = "ledger"
    host: str = "127.0.0.1"
    port: int = 3306
    name: str = "ledger"
    url: Optional[str] = None

    @classmethod
    def from_env(cls) -> "DatabaseSettings":
        """Instantiate settings using environment overrides when present."""

        defaults = cls()
        return cls(
            driver=os.getenv("DB_DRIVER", defaults.driver),
            user=os.getenv("DB_USER", defaults.user),
            password=os.getenv("DB_PASSWORD", defaults.password),
            host=os.getenv("DB_HOST", defaults.host),
            port=int(os.getenv("DB_PORT", defaults.port)),
            name=os.getenv("DB_NAME", defaults.name),
            url=os.getenv("DATABASE_URL") or None,
        )

    @property
    def sqlalchemy_url(self) -> str:
        """Return a SQLAlchemy compatible URL.

        ``DATABASE_URL`` wins over the individual connection parts.
        """

        if self.url:
            return self.url
        return f"{self.driver}://{self.user}:{self.password}@{self.host}:{self.port}/{self.name}"

    @property
    def masked_url(self) -> str:
        """Connection target suitable for log output."""

        if self.url:
            scheme, _, rest = self.url.partition("://")
            _, at, location = rest.rpartition("@")
            return f"{scheme}://***@{location}" if at else self.url
        pwd = "***" if self.password else ""
        return f"{self.driver}://{self.user}:{pwd}@{self.host}:{self.port}/{self.name}"


@dataclass(frozen=True)
class LoggingSettings:
    """Log level and destination."""

    level: str = "INFO"
    log_dir: Optional[Path] = Path("logs")

    @classmethod
    def from_env(cls) -> "LoggingSettings":
        defaults = cls()
        raw_dir = os.getenv("LOG_DIR")
        if raw_dir is None:
            log_dir = defaults.log_dir
        else:
            log_dir = Path(raw_dir) if raw_dir.strip() else None
        return cls(level=os.getenv("LOG_LEVEL", defaults.level).upper(), log_dir=log_dir)


@dataclass(frozen=True)
class Settings:
    """Container for application configuration."""

    database: DatabaseSettings
    logging: LoggingSettings = LoggingSettings()
    sqlalchemy_echo: bool = False

    @classmethod
    def from_env(cls, dotenv_path: Optional[Path] = None) -> "Settings":
        """Build ``Settings`` using environment variables (optionally from ``.env``)."""

        _load_env(dotenv_path)

        return cls(
            database=DatabaseSettings.from_env(),
            logging=LoggingSettings.from_env(),
            sqlalchemy_echo=_flag(os.getenv("SQLALCHEMY_ECHO", "false")),
        )


@lru_cache()
def get_settings(dotenv_path: Optional[Path] = None) -> Settings:
    """Return a cached settings instance."""

    return Settings.from_env(dotenv_path=dotenv_path)
