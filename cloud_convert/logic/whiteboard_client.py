"""Whiteboard conversion-task status client.

Queries `GET /v5/services/conversion/tasks/{task_uuid}?type={resource_type}`
on the whiteboard service. The request carries the SDK token and the task's
region as headers. Timeout and connect retries are owned by the httpx
transport built from `WhiteboardConfig`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from cloud_convert.config import WhiteboardConfig
from cloud_convert.logic.errors import RemoteQueryError
from cloud_convert.models.convert import ConversionTaskStatus, RemoteConversionStatus, ResourceType

logger = logging.getLogger(__name__)

TASK_PATH = "/v5/services/conversion/tasks/{task_uuid}"


class ConversionStatusClient:
    def __init__(self, config: WhiteboardConfig, http_client: Optional[httpx.Client] = None) -> None:
        self._config = config
        self._client = http_client or httpx.Client(
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            transport=httpx.HTTPTransport(retries=config.retries),
        )

    def close(self) -> None:
        self._client.close()

    def query_status(self, region: str, task_uuid: str, resource_type: ResourceType) -> ConversionTaskStatus:
        """Return the normalised status of a remote conversion task.

        Raises RemoteQueryError on transport failures, non-2xx responses and
        bodies that are not a JSON object.
        """
        headers = {"token": self._config.sdk_token, "region": region}
        path = TASK_PATH.format(task_uuid=task_uuid)
        try:
            resp = self._client.get(path, params={"type": ResourceType(resource_type).value}, headers=headers)
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "whiteboard.query_status.http_error task=%s status=%s",
                task_uuid,
                e.response.status_code,
            )
            raise RemoteQueryError(detail=f"Conversion service responded {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.warning("whiteboard.query_status.transport_error task=%s error=%s", task_uuid, e)
            raise RemoteQueryError(detail="Conversion service unreachable") from e
        except ValueError as e:
            logger.warning("whiteboard.query_status.bad_body task=%s", task_uuid)
            raise RemoteQueryError(detail="Conversion service returned an invalid body") from e

        if not isinstance(body, dict):
            raise RemoteQueryError(detail="Conversion service returned an invalid body")
        return _parse_task(body)


def _parse_task(body: Dict[str, Any]) -> ConversionTaskStatus:
    status = RemoteConversionStatus.parse(body.get("status"))
    progress = None
    # Progress is only reported while converting and its shape varies by type
    raw_progress = body.get("progress")
    if isinstance(raw_progress, dict):
        raw_progress = raw_progress.get("convertedPercentage")
    if isinstance(raw_progress, (int, float)) and not isinstance(raw_progress, bool):
        progress = float(raw_progress)
    return ConversionTaskStatus(status=status, progress=progress, raw=body)


__all__ = ["ConversionStatusClient", "TASK_PATH"]
