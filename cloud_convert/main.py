from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from starlette.exceptions import HTTPException
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from cloud_convert.config import AppConfig, load_config
from cloud_convert.db.base import get_engine
from cloud_convert.db.migrations_runner import apply_migrations
from cloud_convert.http.problem import (
    handle_convert_error,
    handle_http_exception,
    handle_request_validation_error,
    handle_unexpected_error,
)
from cloud_convert.http.request_id import RequestIdMiddleware
from cloud_convert.logging_setup import configure_logging
from cloud_convert.logic.errors import ConvertError
from cloud_convert.logic.reconciler import ConversionReconciler, StatusClient
from cloud_convert.logic.repository_files import ConvertStepStore
from cloud_convert.logic.whiteboard_client import ConversionStatusClient
from cloud_convert.routes import api_router

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def _health_check(engine: Engine) -> dict:
    try:
        with engine.connect() as conn:
            conn.execute(sql_text("SELECT 1")).fetchone()
        return {"status": "ok", "db": True}
    except SQLAlchemyError as e:
        logger.error("Health DB check failed", exc_info=True)
        return {"status": "degraded", "db": False, "reason": str(e)}


def create_app(
    config: Optional[AppConfig] = None,
    *,
    engine: Optional[Engine] = None,
    status_client: Optional[StatusClient] = None,
) -> FastAPI:
    """Build the FastAPI application.

    `engine` and `status_client` default to ones built from configuration;
    tests pass their own to avoid touching a real database or network.
    """
    configure_logging()
    cfg = config or load_config()
    eng = engine or get_engine(cfg.database.dsn)
    if cfg.database.auto_apply_migrations:
        apply_migrations(eng)

    owned_client = None
    if status_client is None:
        owned_client = ConversionStatusClient(cfg.whiteboard)
        status_client = owned_client

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        if owned_client is not None:
            owned_client.close()

    app = FastAPI(title="Cloud Storage Convert Service", lifespan=lifespan)
    app.state.config = cfg
    app.state.engine = eng
    app.state.reconciler = ConversionReconciler(ConvertStepStore(eng), status_client)

    app.add_exception_handler(ConvertError, handle_convert_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.add_middleware(RequestIdMiddleware)

    @app.get("/health")
    def health() -> dict:
        return _health_check(app.state.engine)

    app.include_router(api_router, prefix=API_PREFIX)
    logger.info("app_created whiteboard=%s", cfg.whiteboard.base_url)
    return app


__all__ = ["create_app", "API_PREFIX"]
