"""Error taxonomy for convert-finish reconciliation.

Each kind carries a stable `code`; HTTP statuses are resolved centrally in
`cloud_convert.http.error_mapping`.
"""

from __future__ import annotations

from typing import Optional


class ConvertError(Exception):
    code = "SERVER_FAIL"
    detail = "Conversion reconciliation failed"
    # Transient kinds are expected while polling; callers retry later
    transient = False

    def __init__(self, file_uuid: Optional[str] = None, detail: Optional[str] = None) -> None:
        self.file_uuid = file_uuid
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class RecordNotFound(ConvertError):
    code = "FILE_NOT_FOUND"
    detail = "File not found"


class ConversionNotStarted(ConvertError):
    code = "FILE_NOT_CONVERTING"
    detail = "File has no conversion task"


class AlreadyConverted(ConvertError):
    code = "FILE_IS_CONVERTED"
    detail = "File is already converted"


class ConversionFailed(ConvertError):
    code = "FILE_CONVERT_FAILED"
    detail = "File conversion failed"


class ConversionWaiting(ConvertError):
    code = "FILE_IS_CONVERT_WAITING"
    detail = "File conversion is waiting to start"
    transient = True


class ConversionInProgress(ConvertError):
    code = "FILE_IS_CONVERTING"
    detail = "File is converting"
    transient = True


class RemoteQueryError(ConvertError):
    code = "REMOTE_QUERY_FAILED"
    detail = "Conversion status query failed"
    transient = True


__all__ = [
    "ConvertError",
    "RecordNotFound",
    "ConversionNotStarted",
    "AlreadyConverted",
    "ConversionFailed",
    "ConversionWaiting",
    "ConversionInProgress",
    "RemoteQueryError",
]
