"""Pydantic models for convert route payloads.

Declared outside the route module so handlers and the route table share a
single definition of the request and response shapes.
"""

from __future__ import annotations

import uuid
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FinishConvertRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_uuid: str = Field(alias="fileUUID")

    @field_validator("file_uuid")
    @classmethod
    def must_be_uuid_v4(cls, v: str) -> str:
        try:
            parsed = uuid.UUID(str(v))
        except ValueError:
            raise ValueError("fileUUID must be a UUID v4 string")
        if parsed.version != 4:
            raise ValueError("fileUUID must be a UUID v4 string")
        return str(parsed)


class SuccessEnvelope(BaseModel):
    status: int = 0
    data: Dict[str, Any] = Field(default_factory=dict)


__all__ = ["FinishConvertRequest", "SuccessEnvelope"]
