"""Cloud storage convert routes.

`finish_convert` is a thin adapter: it takes the validated body and the
caller id and runs the reconciler. A raised `ConvertError` is shaped into
problem+json by the app-level handler in `cloud_convert.http.problem`.
No SQL or remote calls live here.
"""

from __future__ import annotations

import logging

from fastapi import Depends, Request
from fastapi.responses import JSONResponse

from cloud_convert.http.error_mapping import STATUS_SUCCESS
from cloud_convert.logic.reconciler import ConversionReconciler
from cloud_convert.models.requests import FinishConvertRequest, SuccessEnvelope
from cloud_convert.routes.deps import current_user_uuid, get_reconciler

logger = logging.getLogger(__name__)


def finish_convert(
    payload: FinishConvertRequest,
    request: Request,
    caller_uuid: str = Depends(current_user_uuid),
    reconciler: ConversionReconciler = Depends(get_reconciler),
) -> JSONResponse:
    """Finalize a file's conversion once the remote task has finished.

    200 with an empty payload when the file is (now) Done; otherwise a
    problem+json whose `code` tells the caller whether to keep polling.
    """
    data = reconciler.finish_conversion(payload.file_uuid, caller_uuid)
    logger.info(
        "convert_finish.done file=%s request_id=%s",
        payload.file_uuid,
        getattr(request.state, "request_id", None),
    )
    return JSONResponse(SuccessEnvelope(status=STATUS_SUCCESS, data=data).model_dump(), status_code=200)


__all__ = ["finish_convert"]
