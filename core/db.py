"""
core/db.py -- Database connection handle.

The engine is an explicit handle: create_database() builds one from Settings
and returns it to the caller, who owns it. get_database() is the
once-per-process cache of that handle for application code (create once,
reuse); close_database() disposes it at shutdown.

SQLAlchemy's Engine is itself a connection pool and is safe to share across
threads, so nothing here needs a lock beyond lru_cache.

DATABASE_DSN may be a full SQLAlchemy URL ("mysql+pymysql://u:p@host/db") or
the part after "://", in which case DATABASE_DRIVER (default "mysql+pymysql") is
prepended. MySQL URLs get charset=utf8mb4 unless a charset is already set.

Layer rule: core/ is the kernel. This module may not import from auth/.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import ArgumentError

from core.config import Settings, get_settings, pick

logger = logging.getLogger("jaha.db")

_DEFAULT_DRIVER = "mysql+pymysql"


class DatabaseConfigError(ValueError):
    """DATABASE_DSN is missing or cannot be parsed."""


def build_database_url(driver: str, dsn: str) -> URL:
    if not dsn:
        raise DatabaseConfigError("DSN not set. Set DATABASE_DSN in your environment or .env file.")
    raw = dsn if "://" in dsn else f"{pick(driver, _DEFAULT_DRIVER)}://{dsn}"
    try:
        url = make_url(raw)
    except (ArgumentError, ValueError) as exc:
        raise DatabaseConfigError(f"Invalid DATABASE_DSN: {exc}") from exc
    if url.get_backend_name() == "mysql" and "charset" not in url.query:
        url = url.update_query_dict({"charset": "utf8mb4"})
    return url


def create_database(settings: Settings | None = None) -> Engine:
    """Create a new Engine from settings (defaults to get_settings())."""
    settings = settings or get_settings()
    url = build_database_url(settings.database_driver, settings.database_dsn)
    engine = create_engine(url, pool_pre_ping=True, echo=settings.debug)
    logger.info("Database engine created (%s)", url.render_as_string(hide_password=True))
    return engine


@lru_cache
def get_database() -> Engine:
    """Return the process-wide Engine, creating it on first call."""
    return create_database()


def close_database() -> None:
    """Dispose the cached Engine, if one was created."""
    if get_database.cache_info().currsize:
        get_database().dispose()
        get_database.cache_clear()
        logger.info("Database engine disposed")
