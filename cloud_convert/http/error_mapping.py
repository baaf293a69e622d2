"""Central error mapping for the convert routes.

Single source of truth mapping error codes to problem titles and HTTP
statuses. Route and handler modules import from here instead of hardcoding
strings or numbers.
"""

from __future__ import annotations

from typing import Dict

CONVERT_ERROR_MAP: Dict[str, Dict[str, object]] = {
    "FILE_NOT_FOUND": {"title": "Not Found", "status": 404},
    "FILE_NOT_CONVERTING": {"title": "Conflict", "status": 409},
    "FILE_IS_CONVERTED": {"title": "Conflict", "status": 409},
    "FILE_CONVERT_FAILED": {"title": "Unprocessable Entity", "status": 422},
    "FILE_IS_CONVERT_WAITING": {"title": "Conflict", "status": 409},
    "FILE_IS_CONVERTING": {"title": "Conflict", "status": 409},
    "REMOTE_QUERY_FAILED": {"title": "Bad Gateway", "status": 502},
    "PARAMS_CHECK_FAILED": {"title": "Invalid Request", "status": 422},
    "NOT_LOGIN": {"title": "Unauthorized", "status": 401},
    "SERVER_FAIL": {"title": "Internal Server Error", "status": 500},
}

# Envelope status values carried alongside successful payloads
STATUS_SUCCESS = 0
STATUS_FAILED = 1


def resolve(code: str) -> Dict[str, object]:
    """Return the mapping entry for `code`, falling back to SERVER_FAIL."""
    return CONVERT_ERROR_MAP.get(code) or CONVERT_ERROR_MAP["SERVER_FAIL"]


__all__ = ["CONVERT_ERROR_MAP", "STATUS_SUCCESS", "STATUS_FAILED", "resolve"]
