"""Problem+JSON utilities and global exception handlers.

Defines the RFC7807 media type and the handler callables registered by the
app factory. Every error leaving the service is shaped as problem+json.
"""

from __future__ import annotations

import logging

from fastapi import Request
from starlette.exceptions import HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from cloud_convert.logic.errors import ConvertError
from cloud_convert.logic.problem_factory import problem, problem_for_error

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)


def problem_response(body: dict, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(body, status_code=int(body.get("status", 500)), media_type=PROBLEM_MEDIA_TYPE, headers=headers)


async def handle_convert_error(request: Request, exc: ConvertError) -> JSONResponse:  # noqa: D401
    logger.info(
        "convert_error path=%s file=%s code=%s request_id=%s",
        request.url.path,
        exc.file_uuid,
        exc.code,
        getattr(request.state, "request_id", None),
    )
    return problem_response(problem_for_error(exc))


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:  # noqa: D401
    if isinstance(exc.detail, dict):
        body = dict(exc.detail)
        body.setdefault("status", exc.status_code)
    else:
        body = {"title": "Error", "status": exc.status_code, "detail": str(exc.detail or "")}
    headers = {str(k): str(v) for k, v in (exc.headers or {}).items()}
    return problem_response(body, headers=headers or None)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: D401
    errors = [
        {"loc": list(err.get("loc", ())), "msg": str(err.get("msg", "")), "type": str(err.get("type", ""))}
        for err in exc.errors()
    ]
    return problem_response(problem("PARAMS_CHECK_FAILED", "Request validation failed", errors=errors))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    logger.error("unexpected_error path=%s", request.url.path, exc_info=exc)
    return problem_response(problem("SERVER_FAIL"))


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "problem_response",
    "handle_convert_error",
    "handle_http_exception",
    "handle_request_validation_error",
    "handle_unexpected_error",
]
