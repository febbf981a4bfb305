"""Database engine factories."""
from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from ledger.core.config import get_settings
from ledger.core.log import get_logger

LOGGER = get_logger(__name__)


def get_sqlalchemy_url() -> str:
    """Return the configured SQLAlchemy URL."""

    settings = get_settings()
    return settings.database.sqlalchemy_url


def create_sync_engine(url: str | None = None, **kwargs) -> Engine:
    """Create a synchronous SQLAlchemy engine using configured defaults."""

    settings = get_settings()
    resolved_url = url or settings.database.sqlalchemy_url

    options = dict(kwargs)
    options.setdefault("echo", settings.sqlalchemy_echo)

    target = settings.database.masked_url if url is None else resolved_url
    LOGGER.debug("Creating SQLAlchemy engine", extra={"url": target, "options": options})
    return create_engine(resolved_url, future=True, **options)
