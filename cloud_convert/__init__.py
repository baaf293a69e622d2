"""FastAPI application package for the cloud storage convert service.

Exposes the application factory. Business logic lives in
`cloud_convert/logic/` and route handlers in `cloud_convert/routes/`.
"""

from __future__ import annotations

from cloud_convert.main import create_app

__all__ = ["create_app"]
