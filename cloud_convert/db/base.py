"""SQLAlchemy engine and connection helpers.

The service targets PostgreSQL in production but supports SQLite for local
development and CI. No ORM models are declared; repositories issue typed SQL
through SQLAlchemy Core.
"""

from __future__ import annotations

import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from cloud_convert.config import load_config

logger = logging.getLogger(__name__)

# Module-level cached Engine shared by every repository in the process
_ENGINE: Engine | None = None
_ENGINE_URL: str | None = None


def _db_url() -> str:
    return load_config().database.dsn


def get_engine(url: str | None = None) -> Engine:
    """Return a singleton SQLAlchemy Engine for the given URL.

    For SQLite in-memory URLs, use a StaticPool to keep a single connection
    alive across threads so the schema survives between requests.
    """
    global _ENGINE, _ENGINE_URL
    resolved_url = url or _db_url()

    if _ENGINE is None or _ENGINE_URL != resolved_url:
        kwargs: dict = {"future": True, "pool_pre_ping": True}
        if resolved_url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in resolved_url:
                kwargs["poolclass"] = StaticPool
        if _ENGINE is not None:
            _ENGINE.dispose()
        _ENGINE = create_engine(resolved_url, **kwargs)
        _ENGINE_URL = resolved_url
        logger.info("db_engine_created dialect=%s", _ENGINE.dialect.name)

    return _ENGINE

