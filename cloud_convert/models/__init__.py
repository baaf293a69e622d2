"""Typed models shared by the store, client, reconciler and routes."""

from cloud_convert.models.convert import (
    ConversionTaskStatus,
    ConvertRecord,
    ConvertStep,
    OwnedFile,
    RemoteConversionStatus,
    ResourceType,
)
from cloud_convert.models.requests import FinishConvertRequest, SuccessEnvelope

__all__ = [
    "ConversionTaskStatus",
    "ConvertRecord",
    "ConvertStep",
    "OwnedFile",
    "RemoteConversionStatus",
    "ResourceType",
    "FinishConvertRequest",
    "SuccessEnvelope",
]
