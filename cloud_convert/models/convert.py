"""Value types for the convert-step lifecycle.

`ConvertStep` is the persisted enumeration; `RemoteConversionStatus` is the
normalised status reported by the whiteboard conversion service.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ConvertStep(str, Enum):
    NONE = "None"
    CONVERTING = "Converting"
    DONE = "Done"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ConvertStep.DONE, ConvertStep.FAILED)


# Forward-only lifecycle: None -> Converting -> {Done, Failed}
ALLOWED_TRANSITIONS: Dict[ConvertStep, frozenset] = {
    ConvertStep.NONE: frozenset({ConvertStep.CONVERTING, ConvertStep.DONE, ConvertStep.FAILED}),
    ConvertStep.CONVERTING: frozenset({ConvertStep.DONE, ConvertStep.FAILED}),
    ConvertStep.DONE: frozenset(),
    ConvertStep.FAILED: frozenset(),
}


class ResourceType(str, Enum):
    STATIC = "static"
    DYNAMIC = "dynamic"


class RemoteConversionStatus(str, Enum):
    WAITING = "Waiting"
    CONVERTING = "Converting"
    FINISHED = "Finished"
    FAIL = "Fail"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: Any) -> "RemoteConversionStatus":
        """Map a raw remote value onto a known status; anything else is UNKNOWN."""
        for member in (cls.WAITING, cls.CONVERTING, cls.FINISHED, cls.FAIL):
            if value == member.value:
                return member
        return cls.UNKNOWN


@dataclass(frozen=True)
class OwnedFile:
    id: int
    file_uuid: str
    user_uuid: str


@dataclass(frozen=True)
class ConvertRecord:
    file_uuid: str
    file_url: str
    convert_step: ConvertStep
    task_uuid: Optional[str]
    region: Optional[str]

    @property
    def has_task(self) -> bool:
        return bool(self.task_uuid) and bool(self.region)


@dataclass(frozen=True)
class ConversionTaskStatus:
    status: RemoteConversionStatus
    progress: Optional[float] = None
    raw: Dict[str, Any] = field(default_factory=dict)


__all__ = [
    "ALLOWED_TRANSITIONS",
    "ConvertStep",
    "ResourceType",
    "RemoteConversionStatus",
    "OwnedFile",
    "ConvertRecord",
    "ConversionTaskStatus",
]
