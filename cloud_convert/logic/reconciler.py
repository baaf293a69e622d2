"""Convert-finish reconciliation.

Aligns a file's persisted convert step with the remote conversion task.
The remote service is the source of truth; this module only pulls from it.
Terminal steps (Done, Failed) are checked before any remote call so that
repeated calls after reconciliation never reach the remote service.

Remote status handling:

    Finished        -> write Done, succeed
    Fail            -> write Failed, raise ConversionFailed
    Waiting         -> no write, raise ConversionWaiting
    anything else   -> no write, raise ConversionInProgress
"""

from __future__ import annotations

import logging
from typing import Protocol

from cloud_convert.logic.errors import (
    AlreadyConverted,
    ConversionFailed,
    ConversionInProgress,
    ConversionNotStarted,
    ConversionWaiting,
    RecordNotFound,
)
from cloud_convert.logic.resource_type import determine_type
from cloud_convert.models.convert import (
    ConversionTaskStatus,
    ConvertRecord,
    ConvertStep,
    OwnedFile,
    RemoteConversionStatus,
    ResourceType,
)

logger = logging.getLogger(__name__)


class StepStore(Protocol):
    def find_owned_record(self, file_uuid: str, user_uuid: str) -> OwnedFile | None:
        ...

    def find_conversion_record(self, file_uuid: str) -> ConvertRecord | None:
        ...

    def advance_step(self, file_uuid: str, new_step: ConvertStep, expected: ConvertStep | None = None) -> bool:
        ...


class StatusClient(Protocol):
    def query_status(self, region: str, task_uuid: str, resource_type: ResourceType) -> ConversionTaskStatus:
        ...


def _raise_if_terminal(record: ConvertRecord) -> None:
    if record.convert_step is ConvertStep.DONE:
        raise AlreadyConverted(record.file_uuid)
    if record.convert_step is ConvertStep.FAILED:
        raise ConversionFailed(record.file_uuid)


class ConversionReconciler:
    def __init__(self, store: StepStore, client: StatusClient) -> None:
        self._store = store
        self._client = client

    def finish_conversion(self, file_uuid: str, caller_uuid: str) -> dict:
        """Reconcile one file and return an empty payload once it is Done.

        Every other outcome is raised as a ConvertError subclass.
        """
        if self._store.find_owned_record(file_uuid, caller_uuid) is None:
            logger.info("convert_finish.not_owned file=%s", file_uuid)
            raise RecordNotFound(file_uuid)

        record = self._store.find_conversion_record(file_uuid)
        if record is None:
            logger.info("convert_finish.record_missing file=%s", file_uuid)
            raise RecordNotFound(file_uuid)

        _raise_if_terminal(record)

        if not record.has_task:
            raise ConversionNotStarted(file_uuid)

        resource_type = determine_type(record.file_url)
        # RemoteQueryError propagates untouched; a failed query never moves the step
        task = self._client.query_status(record.region, record.task_uuid, resource_type)
        logger.info(
            "convert_finish.remote_status file=%s task=%s type=%s status=%s",
            file_uuid,
            record.task_uuid,
            resource_type.value,
            task.status.value,
        )

        if task.status is RemoteConversionStatus.FINISHED:
            self._settle(record, ConvertStep.DONE)
            return {}
        if task.status is RemoteConversionStatus.FAIL:
            self._settle(record, ConvertStep.FAILED)
            raise ConversionFailed(file_uuid)
        if task.status is RemoteConversionStatus.WAITING:
            raise ConversionWaiting(file_uuid)
        raise ConversionInProgress(file_uuid)

    def _settle(self, record: ConvertRecord, step: ConvertStep) -> None:
        """Write a terminal step, comparing against the step observed earlier.

        If another caller already moved the row, report what it persisted.
        """
        if self._store.advance_step(record.file_uuid, step, expected=record.convert_step):
            return
        logger.warning("convert_finish.lost_race file=%s wanted=%s", record.file_uuid, step.value)
        current = self._store.find_conversion_record(record.file_uuid)
        if current is None:
            raise RecordNotFound(record.file_uuid)
        _raise_if_terminal(current)
        # Row moved to another non-terminal step (e.g. None -> Converting); retry once from there
        if not self._store.advance_step(record.file_uuid, step, expected=current.convert_step):
            latest = self._store.find_conversion_record(record.file_uuid)
            if latest is None:
                raise RecordNotFound(record.file_uuid)
            _raise_if_terminal(latest)
            raise ConversionInProgress(record.file_uuid)


__all__ = ["ConversionReconciler", "StepStore", "StatusClient"]
