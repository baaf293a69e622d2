"""Centralised construction of problem+json payloads.

Turns error codes and `ConvertError` instances into problem dicts so route
modules never embed status numbers or code literals.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from cloud_convert.http.error_mapping import STATUS_FAILED, resolve
from cloud_convert.logic.errors import ConvertError

logger = logging.getLogger(__name__)


def problem(code: str, detail: Optional[str] = None, **extra: object) -> Dict[str, object]:
    entry = resolve(code)
    body: Dict[str, object] = {
        "type": "about:blank",
        "title": entry["title"],
        "status": entry["status"],
        "detail": detail or str(entry["title"]),
        "code": code,
        "result": STATUS_FAILED,
    }
    body.update(extra)
    logger.info("error_handler.handle code=%s status=%s", code, entry["status"])
    return body


def problem_for_error(exc: ConvertError) -> Dict[str, object]:
    """Return the problem body for a reconciliation error."""
    return problem(exc.code, exc.detail, retryable=bool(exc.transient))


def problem_not_login() -> Dict[str, object]:
    return problem("NOT_LOGIN", "Caller identity is required")


__all__ = ["problem", "problem_for_error", "problem_not_login"]
