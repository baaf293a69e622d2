"""Database bootstrap utilities for the convert service.

Exposes engine construction and the SQL migrations runner. No ORM models
leak into route handlers.
"""

from cloud_convert.db.base import get_engine
from cloud_convert.db.migrations_runner import apply_migrations

__all__ = [
    "get_engine",
    "apply_migrations",
]
