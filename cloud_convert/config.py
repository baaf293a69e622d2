"""Configuration utilities for the convert-finish service.

This module loads application configuration with the following rules:
- Primary source: `service_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_SERVICE_CONFIG = Path("service_config.json")
DEFAULT_DATABASE_URL = "sqlite+pysqlite:///:memory:"
DEFAULT_WHITEBOARD_BASE_URL = "https://api.netless.link"
logger = logging.getLogger(__name__)


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


class DatabaseConfig(BaseModel):
    dsn: str
    auto_apply_migrations: bool = Field(default=True)

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.dsn must be a non-empty string")
        return v


class WhiteboardConfig(BaseModel):
    base_url: str
    sdk_token: str = ""
    timeout_seconds: float = Field(default=10.0, gt=0)
    retries: int = Field(default=2, ge=0)

    @field_validator("base_url")
    @classmethod
    def base_url_must_be_http(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("whiteboard.base_url must be an http(s) URL")
        return v.rstrip("/")


class AppConfig(BaseModel):
    database: DatabaseConfig
    whiteboard: WhiteboardConfig


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def _truthy(text: Optional[str]) -> bool:
    return str(text).strip().lower() in {"1", "true", "yes", "on"}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) service_config.json at project root
    4) Safe defaults for development
    """

    base = _read_json_file(ROOT_SERVICE_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return str(cur) if cur is not None else default

    # Database
    dsn = (
        _env("TEST_DATABASE_URL")
        or _env("DATABASE_URL")
        or _read_config_file("database.url")
        or _base("database.dsn")
        or DEFAULT_DATABASE_URL
    )
    auto_migrate = _env("AUTO_APPLY_MIGRATIONS") or _base("database.auto_apply_migrations", "true")

    # Whiteboard conversion service
    wb_url = _env("WHITEBOARD_BASE_URL") or _read_config_file("whiteboard.base_url") or _base("whiteboard.base_url", DEFAULT_WHITEBOARD_BASE_URL)
    wb_token = _env("WHITEBOARD_SDK_TOKEN") or _read_config_file("whiteboard.sdk_token") or _base("whiteboard.sdk_token", "")
    wb_timeout = _env("WHITEBOARD_TIMEOUT_SECONDS") or _read_config_file("whiteboard.timeout_seconds") or _base("whiteboard.timeout_seconds", "10")
    wb_retries = _env("WHITEBOARD_RETRIES") or _read_config_file("whiteboard.retries") or _base("whiteboard.retries", "2")

    try:
        cfg = AppConfig(
            database=DatabaseConfig(dsn=dsn, auto_apply_migrations=_truthy(auto_migrate)),
            whiteboard=WhiteboardConfig(
                base_url=str(wb_url).strip(),
                sdk_token=str(wb_token or "").strip(),
                timeout_seconds=str(wb_timeout).strip(),
                retries=str(wb_retries).strip(),
            ),
        )
        return cfg
    except PydanticValidationError as e:
        logger.error("Invalid application configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "WhiteboardConfig",
    "load_config",
]
