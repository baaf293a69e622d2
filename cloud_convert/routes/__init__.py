"""Route registration for the convert service.

Routes are declared in an explicit table (method, path, request model,
handler) and mounted onto one APIRouter; nothing is bound by decorators.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Type, get_type_hints

from fastapi import APIRouter
from pydantic import BaseModel

from cloud_convert.models.requests import FinishConvertRequest
from cloud_convert.routes.convert import finish_convert


@dataclass(frozen=True)
class RouteSpec:
    method: str
    path: str
    request_model: Optional[Type[BaseModel]]
    handler: Callable
    summary: str = ""
    tags: tuple[str, ...] = ()


ROUTES: tuple[RouteSpec, ...] = (
    RouteSpec(
        method="POST",
        path="/cloud-storage/convert/finish",
        request_model=FinishConvertRequest,
        handler=finish_convert,
        summary="Finalize a file conversion",
        tags=("CloudStorage", "Convert"),
    ),
)


def _check_request_model(spec: RouteSpec) -> None:
    """Fail fast when the declared body model is not what the handler takes."""
    hints = get_type_hints(spec.handler)
    hints.pop("return", None)
    if spec.request_model is None:
        bodies = [name for name, tp in hints.items() if isinstance(tp, type) and issubclass(tp, BaseModel)]
        if bodies:
            raise TypeError(f"{spec.method} {spec.path}: handler takes a body ({bodies[0]}) but no request_model is declared")
        return
    if spec.request_model not in hints.values():
        raise TypeError(
            f"{spec.method} {spec.path}: handler has no parameter annotated with {spec.request_model.__name__}"
        )


def build_router(routes: tuple[RouteSpec, ...] = ROUTES) -> APIRouter:
    router = APIRouter()
    for spec in routes:
        _check_request_model(spec)
        router.add_api_route(
            spec.path,
            spec.handler,
            methods=[spec.method],
            summary=spec.summary or None,
            tags=list(spec.tags),
        )
    return router


api_router = build_router()

__all__ = ["RouteSpec", "ROUTES", "build_router", "api_router"]
