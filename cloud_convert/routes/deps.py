"""Request-scoped dependencies for route handlers.

The authenticating gateway in front of the service resolves the session and
forwards the caller as `X-User-UUID`. Handlers receive it, and the
reconciler built at startup, as explicit parameters.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, Request

from cloud_convert.logic.problem_factory import problem_not_login
from cloud_convert.logic.reconciler import ConversionReconciler

USER_HEADER = "X-User-UUID"


def current_user_uuid(x_user_uuid: Optional[str] = Header(default=None, alias=USER_HEADER)) -> str:
    caller = (x_user_uuid or "").strip()
    if not caller:
        body = problem_not_login()
        raise HTTPException(status_code=int(body["status"]), detail=body)
    return caller


def get_reconciler(request: Request) -> ConversionReconciler:
    return request.app.state.reconciler


__all__ = ["USER_HEADER", "current_user_uuid", "get_reconciler"]
